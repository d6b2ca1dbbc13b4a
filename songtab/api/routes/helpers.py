"""Helper functions for song, tab and video routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from songtab.errors import ApiError, InternalServerError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def storage_errors(db: AsyncSession, action: str, commit: bool = False) -> AsyncIterator[None]:
    """
    Run one request's storage work as a single transaction.

    On success the session is committed when ``commit`` is set. Any error
    rolls the whole unit back. ApiErrors propagate unchanged; anything else
    (a storage failure, a dropped connection) is logged and surfaces as a
    generic 500.
    """
    try:
        yield
        if commit:
            await db.commit()
    except ApiError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to {action}: {e}", exc_info=True)
        raise InternalServerError() from e
