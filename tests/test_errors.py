"""Tests for the error taxonomy and its JSON envelope."""
import logging
import re

import pytest
from httpx import ASGITransport, AsyncClient

from songtab.auth.identity import get_identity_verifier
from songtab.db.models import Song
from songtab.errors import (
    InternalServerError,
    NotFoundError,
    SongIntegrityError,
    UnauthorizedError,
    ValidationError,
    error_body,
    utc_timestamp,
)
from songtab.main import app
from songtab.services import songs as song_service


def test_timestamp_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


def test_error_body_shape():
    body = error_body("Song not found", id="not_found")
    assert body["status"] == "error"
    assert body["message"] == "Song not found"
    assert body["id"] == "not_found"
    assert "timestamp" in body


@pytest.mark.parametrize("error, status_code, message", [
    (ValidationError(), 400, "Invalid request"),
    (UnauthorizedError(), 401, "Unauthorized"),
    (NotFoundError("Song not found"), 404, "Song not found"),
    (InternalServerError(), 500, "Internal Server Error"),
])
def test_status_and_default_message(error, status_code, message):
    assert error.status_code == status_code
    assert error.to_body()["message"] == message


def test_only_not_found_carries_id():
    assert NotFoundError().to_body()["id"] == "not_found"
    assert "id" not in ValidationError().to_body()


def test_integrity_error_hides_detail():
    error = SongIntegrityError("Song abc has no tab")
    assert error.status_code == 500
    assert error.message == "Song abc has no tab"
    assert error.to_body()["message"] == "Internal Server Error"


@pytest.mark.asyncio
async def test_song_without_tab_is_server_error(client, db_session, auth_headers):
    song = Song(id="orphan-song", user_id="550e8400-e29b-41d4-a716-446655440000", title="Orphan", artist="Nobody")
    db_session.add(song)
    await db_session.commit()

    resp = await client.put(
        "/api/songs/orphan-song",
        json={"title": "Orphan", "artist": "Nobody", "tab_text": "Em7"},
        headers=auth_headers,
    )
    assert resp.status_code == 500
    body = resp.json()
    assert body == {"status": "error", "message": "Internal Server Error", "timestamp": body["timestamp"]}


@pytest.mark.asyncio
async def test_unexpected_storage_failure_uses_envelope(client, auth_headers, monkeypatch, caplog):
    """A non-SQLAlchemy failure inside a route's unit of work still renders as JSON."""
    async def refuse(*args, **kwargs):
        raise ConnectionRefusedError("connect call failed ('10.0.0.5', 5432)")

    monkeypatch.setattr(song_service, "list_songs", refuse)
    with caplog.at_level(logging.ERROR):
        resp = await client.get("/api/songs", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json()["message"] == "Internal Server Error"
    assert "connect call failed" not in resp.text
    assert "Failed to list songs" in caplog.text


@pytest.mark.asyncio
async def test_unhandled_exception_uses_envelope(db_session, caplog):
    """Errors the route does not translate itself reach the catch-all handler."""
    class BrokenVerifier:
        async def verify(self, token):
            raise RuntimeError("verifier crashed")

    app.dependency_overrides[get_identity_verifier] = lambda: BrokenVerifier()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        with caplog.at_level(logging.ERROR):
            resp = await ac.post("/api/auth/google", json={"token": "valid:g-1"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["status"] == "error"
    assert body["message"] == "Internal Server Error"
    assert body["timestamp"].endswith("Z")
    assert "verifier crashed" not in resp.text
    assert "Unhandled RuntimeError" in caplog.text
