"""Song endpoints: list, get, create, update, delete."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.api.routes.helpers import storage_errors
from songtab.auth.dependencies import require_session
from songtab.auth.tokens import SessionClaims
from songtab.db import get_db
from songtab.models.songs import (
    SongAggregateResponse,
    SongResponse,
    SongWriteRequest,
    aggregate_response,
    song_response,
)
from songtab.services import songs as song_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/songs", response_model=list[SongResponse])
async def list_songs(
    limit: int = Query(default=10, ge=0, le=100),
    offset: int = Query(default=0, ge=0),
    query: Optional[str] = Query(default=None, description="Case-insensitive match on title or artist"),
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> list[SongResponse]:
    """List the caller's songs, ordered by artist then title."""
    async with storage_errors(db, "list songs"):
        songs = await song_service.list_songs(
            db,
            session["user_id"],
            limit=limit,
            offset=offset,
            query=query,
        )
    return [song_response(song) for song in songs]


@router.get("/songs/{song_id}", response_model=SongResponse)
async def get_song(
    song_id: str,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SongResponse:
    """Get one song. Tab and videos have their own endpoints."""
    async with storage_errors(db, "get song"):
        song = await song_service.get_song(db, session["user_id"], song_id)
    return song_response(song)


@router.post("/songs", response_model=SongAggregateResponse, status_code=status.HTTP_201_CREATED)
async def create_song(
    body: SongWriteRequest,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SongAggregateResponse:
    """Create a song with its tab and up to five videos."""
    async with storage_errors(db, "create song", commit=True):
        aggregate = await song_service.create_song(
            db,
            session["user_id"],
            title=body.title,
            artist=body.artist,
            tab_text=body.tab_text,
            videos=body.videos,
        )
    return aggregate_response(aggregate)


@router.put("/songs/{song_id}", response_model=SongAggregateResponse)
async def update_song(
    song_id: str,
    body: SongWriteRequest,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> SongAggregateResponse:
    """
    Update a song and its tab, and reconcile its videos with the submitted list.

    ``videos`` is the complete new set, not a patch: entries with an ``id``
    update that video, entries without one are created, and every existing
    video left out is deleted. Omitting ``videos`` or sending ``null`` is
    the same as ``[]`` and removes all of the song's videos.
    """
    async with storage_errors(db, "update song", commit=True):
        aggregate = await song_service.update_song(
            db,
            session["user_id"],
            song_id,
            title=body.title,
            artist=body.artist,
            tab_text=body.tab_text,
            videos=body.videos,
        )
    return aggregate_response(aggregate)


@router.delete("/songs/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(
    song_id: str,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a song together with its tab and videos."""
    async with storage_errors(db, "delete song", commit=True):
        await song_service.delete_song(db, session["user_id"], song_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
