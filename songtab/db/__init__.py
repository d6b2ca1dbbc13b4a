"""
Database module for Songtab.

Engine lifecycle, the per-request session dependency and the ORM models.
"""
from __future__ import annotations

from songtab.db.database import (
    get_db,
    init_db,
    close_db,
)
from songtab.db.models import User, Song, Tab, Video, MAX_VIDEOS_PER_SONG

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "User",
    "Song",
    "Tab",
    "Video",
    "MAX_VIDEOS_PER_SONG",
]
