"""Request/response models for song, tab and video routes.

Responses are built by the explicit ``*_response`` mapping functions below
rather than by serializing ORM rows, so stored columns such as ``user_id``
and timestamps never reach the client.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from songtab.db.models import Song, Tab, Video
from songtab.services.songs import SongAggregate


class SongWriteRequest(BaseModel):
    """Body of POST /api/songs and PUT /api/songs/{song_id}.

    Fields are untyped; the song service validates them and reports the
    documented messages.
    """
    title: Any = None
    artist: Any = None
    tab_text: Any = None
    videos: Any = Field(
        default=None,
        description=(
            "Up to 5 {url, video_type, id?} objects. On update this is the full "
            "set: omitted or null removes every video"
        ),
    )


class SongResponse(BaseModel):
    id: str
    title: str
    artist: str


class TabResponse(BaseModel):
    id: str
    text: str


class VideoResponse(BaseModel):
    id: str
    video_type: str
    url: str


class SongAggregateResponse(BaseModel):
    """A song with its tab and the full current video set."""
    song: SongResponse
    tab: TabResponse
    videos: list[VideoResponse]


def song_response(song: Song) -> SongResponse:
    return SongResponse(id=song.id, title=song.title, artist=song.artist)


def tab_response(tab: Tab) -> TabResponse:
    return TabResponse(id=tab.id, text=tab.text)


def video_response(video: Video) -> VideoResponse:
    return VideoResponse(id=video.id, video_type=video.video_type, url=video.url)


def aggregate_response(aggregate: SongAggregate) -> SongAggregateResponse:
    return SongAggregateResponse(
        song=song_response(aggregate.song),
        tab=tab_response(aggregate.tab),
        videos=[video_response(video) for video in aggregate.videos],
    )

