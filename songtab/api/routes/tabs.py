"""Tab endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.api.routes.helpers import storage_errors
from songtab.auth.dependencies import require_session
from songtab.auth.tokens import SessionClaims
from songtab.db import get_db
from songtab.models.songs import TabResponse, tab_response
from songtab.services import songs as song_service

router = APIRouter()


@router.get("/tabs/{song_id}", response_model=TabResponse)
async def get_tab(
    song_id: str,
    session: SessionClaims = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> TabResponse:
    """Get the tab text of one of the caller's songs."""
    async with storage_errors(db, "get tab"):
        tab = await song_service.get_tab(db, session["user_id"], song_id)
    return tab_response(tab)
