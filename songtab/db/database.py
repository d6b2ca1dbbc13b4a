"""
Engine and session lifecycle for the songs database.

``init_db`` runs once in the app lifespan: it opens the engine for
``settings.database_url`` and creates any of the four tables that are
missing. Requests then get an ``AsyncSession`` from ``get_db``; the route
decides when to commit.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from songtab.config import settings

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./songtab.db"


class Base(DeclarativeBase):
    pass


_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> str:
    """``SONGTAB_DATABASE_URL``, or a local SQLite file when unset."""
    url = settings.database_url
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"SONGTAB_DATABASE_URL not set, using {url}")
    return url


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # aiosqlite hands the connection to a worker thread
        return {"connect_args": {"check_same_thread": False}}
    # Postgres connections can be dropped while idle in the pool
    return {"pool_pre_ping": True}


def _redact(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


async def init_db() -> None:
    """Open the engine and create missing tables (songs has no migrations)."""
    global _engine, _async_session_factory

    url = get_database_url()
    logger.info(f"Connecting to songs database at {_redact(url)}")

    _engine = create_async_engine(url, echo=settings.debug, **_engine_options(url))
    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    # Registers User, Song, Tab and Video on Base.metadata
    from songtab.db import models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Songs database ready")


async def close_db() -> None:
    global _engine, _async_session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Songs database closed")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Nothing is committed here: write routes commit through
    ``storage_errors`` once the whole song aggregate is in place. Work left
    uncommitted when the request fails is rolled back.
    """
    if _async_session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
