"""Video endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.api.routes.helpers import storage_errors
from songtab.auth.dependencies import require_session
from songtab.auth.tokens import SessionClaims
from songtab.db import get_db
from songtab.models.songs import VideoResponse, video_response
from songtab.services import songs as song_service

router = APIRouter()


@router.get("/videos/{song_id}", response_model=list[VideoResponse])
async def list_videos(
    song_id: str,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> list[VideoResponse]:
    """List the videos of one of the caller's songs, in submission order."""
    async with storage_errors(db, "list videos"):
        videos = await song_service.list_videos(db, session["user_id"], song_id)
    return [video_response(video) for video in videos]
