"""
API error taxonomy.

Services raise these; ``songtab.api.exception_handlers`` renders them as the
JSON error envelope ``{"status": "error", "message": ..., "timestamp": ...}``.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2026-01-01T12:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    """Build the error envelope shared by every failing response."""
    body: dict[str, Any] = {"status": "error", **extra}
    body["message"] = message
    body["timestamp"] = utc_timestamp()
    return body


class ApiError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return error_body(self.message)


class ValidationError(ApiError):
    """Client-correctable request problem (400)."""

    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    """Missing, invalid or expired credential (401)."""

    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(ApiError):
    """Resource absent or not owned by the caller (404).

    Both cases produce the same response so one user cannot probe for
    another user's ids.
    """

    status_code = 404
    default_message = "Not found"
    error_id = "not_found"

    def to_body(self) -> dict[str, Any]:
        return error_body(self.message, id=self.error_id)


class InternalServerError(ApiError):
    """Unexpected storage or identity-provider failure (500)."""

    status_code = 500
    default_message = "Internal Server Error"


class SongIntegrityError(InternalServerError):
    """Stored aggregate violates an invariant, e.g. a song without its tab.

    ``message`` carries the detail for the server log; clients only ever see
    the generic 500 message.
    """

    def to_body(self) -> dict[str, Any]:
        return error_body(InternalServerError.default_message)
