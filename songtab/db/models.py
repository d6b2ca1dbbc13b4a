"""
SQLAlchemy ORM models for Songtab.

Tables:
- users: Accounts keyed by the identity provider's subject id
- songs: Songs owned by a user
- tabs: Chord-tab text, exactly one per song
- videos: Video links, up to MAX_VIDEOS_PER_SONG per song
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from songtab.db.database import Base

MAX_VIDEOS_PER_SONG = 5


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


class User(Base):
    """
    User account, created on first Google sign-in.

    ``external_login_id`` is the identity provider's ``sub`` claim. It is
    unique so two racing first logins for the same subject cannot both
    insert a row.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    external_login_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.id[:8]} external={self.external_login_id}>"


class Song(Base):
    """A song owned by one user. Every read and write is scoped by ``user_id``."""
    __tablename__ = "songs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    artist: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Song {self.id[:8]} {self.artist} - {self.title}>"


class Tab(Base):
    """Chord-tab text for a song (one-to-one)."""
    __tablename__ = "tabs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    song_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("songs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tab {self.id[:8]} song={self.song_id[:8]} chars={len(self.text)}>"


class Video(Base):
    """A video link attached to a song (one-to-many)."""
    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    # Index in the submitted list; reads return videos in this order
    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )
    video_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )
    song_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("songs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Video {self.id[:8]} {self.video_type} song={self.song_id[:8]}>"
