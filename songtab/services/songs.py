"""
Song management service.

A song is stored as an aggregate of three tables: the song row, its single
tab row and up to five video rows. The functions here create, update and
delete the aggregate as one unit of work on the caller's session. They only
``flush``; the route commits on success and rolls back on any error, so a
failure part-way through never leaves a song without its tab.

Validation always runs before the first write.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.db.models import MAX_VIDEOS_PER_SONG, Song, Tab, Video
from songtab.errors import NotFoundError, SongIntegrityError, ValidationError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "title, artist, and tab_text are required"
VIDEOS_NOT_ARRAY_MESSAGE = "videos must be an array"
TOO_MANY_VIDEOS_MESSAGE = f"Maximum of {MAX_VIDEOS_PER_SONG} videos allowed"
INVALID_VIDEO_MESSAGE = "Each video must have a url and video_type"
INVALID_VIDEO_ID_MESSAGE = "Video id must be a string"

SONG_NOT_FOUND_MESSAGE = "Song not found"
TAB_NOT_FOUND_MESSAGE = "Tab not found"
VIDEO_NOT_FOUND_MESSAGE = "Video not found"


# =============================================================================
# Input validation
# =============================================================================

@dataclass(frozen=True)
class VideoInput:
    """One submitted video. ``id`` is set when it refers to an existing video."""
    url: str
    video_type: str
    id: Optional[str] = None


@dataclass(frozen=True)
class SongInput:
    title: str
    artist: str
    tab_text: str
    videos: list[VideoInput] = field(default_factory=list)


def _present(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _parse_video(entry: Any) -> VideoInput:
    if not isinstance(entry, dict):
        raise ValidationError(INVALID_VIDEO_MESSAGE)
    url = entry.get("url")
    video_type = entry.get("video_type")
    if not _present(url) or not _present(video_type):
        raise ValidationError(INVALID_VIDEO_MESSAGE)

    video_id = entry.get("id")
    if video_id is not None and not isinstance(video_id, str):
        raise ValidationError(INVALID_VIDEO_ID_MESSAGE)

    return VideoInput(url=url, video_type=video_type, id=video_id or None)


def validate_song_input(
    title: Any,
    artist: Any,
    tab_text: Any,
    videos: Any = None,
) -> SongInput:
    """
    Validate a create/update payload.

    Checks run in a fixed order so the first failing rule decides the
    message: required fields, videos shape, video count, video entries.

    Raises:
        ValidationError: With one of the public validation messages
    """
    if not (_present(title) and _present(artist) and _present(tab_text)):
        raise ValidationError(REQUIRED_FIELDS_MESSAGE)

    if videos is None:
        videos = []
    if not isinstance(videos, list):
        raise ValidationError(VIDEOS_NOT_ARRAY_MESSAGE)
    if len(videos) > MAX_VIDEOS_PER_SONG:
        raise ValidationError(TOO_MANY_VIDEOS_MESSAGE)

    return SongInput(
        title=title,
        artist=artist,
        tab_text=tab_text,
        videos=[_parse_video(entry) for entry in videos],
    )


# =============================================================================
# Reads
# =============================================================================

@dataclass
class SongAggregate:
    """A song with its tab and videos, as returned by create and update."""
    song: Song
    tab: Tab
    videos: list[Video]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_songs(
    db: AsyncSession,
    user_id: str,
    limit: int = 10,
    offset: int = 0,
    query: Optional[str] = None,
) -> list[Song]:
    """
    List a user's songs ordered by artist, then title.

    Args:
        db: Database session
        user_id: Owner UUID
        limit: Page size
        offset: Rows to skip
        query: Optional case-insensitive substring matched against title or artist

    Returns:
        Songs on the requested page
    """
    stmt = select(Song).where(Song.user_id == user_id)

    if query:
        pattern = f"%{_escape_like(query)}%"
        stmt = stmt.where(
            or_(
                Song.title.ilike(pattern, escape="\\"),
                Song.artist.ilike(pattern, escape="\\"),
            )
        )

    stmt = stmt.order_by(Song.artist.asc(), Song.title.asc()).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_song(db: AsyncSession, user_id: str, song_id: str) -> Song:
    """
    Get a song by id, verifying ownership.

    Raises:
        NotFoundError: The song does not exist or belongs to another user
    """
    result = await db.execute(
        select(Song).where(
            Song.id == song_id,
            Song.user_id == user_id,
        )
    )
    song = result.scalar_one_or_none()
    if song is None:
        raise NotFoundError(SONG_NOT_FOUND_MESSAGE)
    return song


async def _find_tab(db: AsyncSession, song_id: str) -> Optional[Tab]:
    result = await db.execute(select(Tab).where(Tab.song_id == song_id))
    return result.scalar_one_or_none()


async def _find_videos(db: AsyncSession, song_id: str) -> list[Video]:
    result = await db.execute(
        select(Video)
        .where(Video.song_id == song_id)
        .order_by(Video.position.asc(), Video.created_at.asc(), Video.id.asc())
    )
    return list(result.scalars().all())


async def get_tab(db: AsyncSession, user_id: str, song_id: str) -> Tab:
    """Get the tab of a song the user owns."""
    song = await get_song(db, user_id, song_id)
    tab = await _find_tab(db, song.id)
    if tab is None:
        raise NotFoundError(TAB_NOT_FOUND_MESSAGE)
    return tab


async def list_videos(db: AsyncSession, user_id: str, song_id: str) -> list[Video]:
    """List the videos of a song the user owns, in the order they were submitted."""
    song = await get_song(db, user_id, song_id)
    return await _find_videos(db, song.id)


# =============================================================================
# Create
# =============================================================================

async def create_song(
    db: AsyncSession,
    user_id: str,
    title: Any,
    artist: Any,
    tab_text: Any,
    videos: Any = None,
) -> SongAggregate:
    """
    Create a song together with its tab and videos.

    Video ids in the payload are ignored; every entry becomes a new row.
    Returned rows carry their generated ids and videos keep input order.

    Raises:
        ValidationError: Before anything is written
    """
    data = validate_song_input(title, artist, tab_text, videos)

    song = Song(user_id=user_id, title=data.title, artist=data.artist)
    db.add(song)
    # The song id must exist before dependents reference it.
    await db.flush()

    tab = Tab(song_id=song.id, text=data.tab_text)
    db.add(tab)
    created_videos = [
        Video(song_id=song.id, url=entry.url, video_type=entry.video_type, position=index)
        for index, entry in enumerate(data.videos)
    ]
    db.add_all(created_videos)
    await db.flush()

    logger.info(
        f"User {user_id[:8]} created song {song.id[:8]} with {len(created_videos)} video(s)"
    )
    return SongAggregate(song=song, tab=tab, videos=created_videos)


# =============================================================================
# Update
# =============================================================================

@dataclass
class VideoReconciliation:
    """
    Plan for bringing a song's videos in line with a submitted list.

    ``ordered`` is the resulting video set in submission order: entries
    with an id update that video, entries without one are created. Existing
    videos whose id was not submitted end up in ``deletes``.
    """
    existing: dict[str, Video]
    ordered: list[VideoInput]
    deletes: list[Video]

    @property
    def updates(self) -> list[VideoInput]:
        return [entry for entry in self.ordered if entry.id is not None]

    @property
    def creates(self) -> list[VideoInput]:
        return [entry for entry in self.ordered if entry.id is None]


def plan_video_reconciliation(
    existing: list[Video],
    incoming: list[VideoInput],
) -> VideoReconciliation:
    """
    Diff the submitted videos against the stored ones.

    A repeated id counts once, keeping the position of its first
    occurrence and the values of its last.

    Raises:
        NotFoundError: An entry names an id that is not one of this song's videos
        ValidationError: The resulting set would exceed MAX_VIDEOS_PER_SONG
    """
    by_id = {video.id: video for video in existing}
    latest = {entry.id: entry for entry in incoming if entry.id is not None}

    if any(video_id not in by_id for video_id in latest):
        raise NotFoundError(VIDEO_NOT_FOUND_MESSAGE)

    ordered: list[VideoInput] = []
    seen: set[str] = set()
    for entry in incoming:
        if entry.id is None:
            ordered.append(entry)
        elif entry.id not in seen:
            seen.add(entry.id)
            ordered.append(latest[entry.id])

    if len(ordered) > MAX_VIDEOS_PER_SONG:
        raise ValidationError(TOO_MANY_VIDEOS_MESSAGE)

    deletes = [video for video in existing if video.id not in latest]
    return VideoReconciliation(existing=by_id, ordered=ordered, deletes=deletes)


async def update_song(
    db: AsyncSession,
    user_id: str,
    song_id: str,
    title: Any,
    artist: Any,
    tab_text: Any,
    videos: Any = None,
) -> SongAggregate:
    """
    Update a song, its tab, and reconcile its videos.

    Submitting the returned video list again is a no-op: every entry
    carries its id, so nothing is created or deleted.

    Raises:
        ValidationError: Invalid payload or too many resulting videos
        NotFoundError: Song not owned by the user, or unknown video id
        SongIntegrityError: The stored song has no tab
    """
    data = validate_song_input(title, artist, tab_text, videos)
    song = await get_song(db, user_id, song_id)

    tab = await _find_tab(db, song.id)
    if tab is None:
        logger.error(f"Song {song.id[:8]} has no tab; refusing to update")
        raise SongIntegrityError(f"Song {song.id} has no tab")

    existing = await _find_videos(db, song.id)
    plan = plan_video_reconciliation(existing, data.videos)

    song.title = data.title
    song.artist = data.artist
    tab.text = data.tab_text

    result_videos: list[Video] = []
    for index, entry in enumerate(plan.ordered):
        if entry.id is not None:
            video = plan.existing[entry.id]
            video.url = entry.url
            video.video_type = entry.video_type
            video.position = index
        else:
            video = Video(song_id=song.id, url=entry.url, video_type=entry.video_type, position=index)
            db.add(video)
        result_videos.append(video)

    for video in plan.deletes:
        await db.delete(video)

    await db.flush()

    logger.info(
        f"User {user_id[:8]} updated song {song.id[:8]}: "
        f"{len(plan.updates)} video(s) updated, {len(plan.creates)} created, "
        f"{len(plan.deletes)} deleted"
    )
    return SongAggregate(song=song, tab=tab, videos=result_videos)


# =============================================================================
# Delete
# =============================================================================

async def delete_song(db: AsyncSession, user_id: str, song_id: str) -> None:
    """
    Delete a song with its videos and tab.

    Raises:
        NotFoundError: The song does not exist or belongs to another user
    """
    song = await get_song(db, user_id, song_id)

    await db.execute(delete(Video).where(Video.song_id == song.id))
    await db.execute(delete(Tab).where(Tab.song_id == song.id))
    await db.delete(song)
    await db.flush()

    logger.info(f"User {user_id[:8]} deleted song {song.id[:8]}")
