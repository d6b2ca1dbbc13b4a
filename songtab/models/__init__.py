"""Pydantic models for the Songtab API."""
from __future__ import annotations

from songtab.models.auth import GoogleLoginRequest, LoginResponse, login_response
from songtab.models.songs import (
    SongWriteRequest,
    SongResponse,
    TabResponse,
    VideoResponse,
    SongAggregateResponse,
    song_response,
    tab_response,
    video_response,
    aggregate_response,
)

__all__ = [
    "GoogleLoginRequest",
    "LoginResponse",
    "login_response",
    "SongWriteRequest",
    "SongResponse",
    "TabResponse",
    "VideoResponse",
    "SongAggregateResponse",
    "song_response",
    "tab_response",
    "video_response",
    "aggregate_response",
]
