"""
Tests for songtab.main: SecurityHeadersMiddleware, root, health, lifespan.
"""
from __future__ import annotations

from typing import Any
import pytest
from unittest.mock import patch, AsyncMock

from fastapi.testclient import TestClient

from songtab.auth.tokens import SessionTokenError


@patch("songtab.main.init_db", new_callable=AsyncMock)
@patch("songtab.main.close_db", new_callable=AsyncMock)
def test_security_headers_middleware_adds_headers(mock_close: Any, mock_init: Any) -> None:
    """SecurityHeadersMiddleware adds X-Frame-Options, X-Content-Type-Options and Referrer-Policy."""
    from songtab.main import app
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 200
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
    mock_init.assert_awaited_once()
    mock_close.assert_awaited_once()


@patch("songtab.main.init_db", new_callable=AsyncMock)
@patch("songtab.main.close_db", new_callable=AsyncMock)
def test_root_and_health(mock_close: Any, mock_init: Any) -> None:
    from songtab.main import app
    with TestClient(app) as client:
        root = client.get("/").json()
        health = client.get("/api/health").json()
    assert root["service"] == "Songtab"
    assert health["status"] == "ok"
    assert health["version"] == root["version"]


@patch("songtab.main.init_db", new_callable=AsyncMock)
def test_startup_refuses_without_token_secret(mock_init: Any) -> None:
    """Lifespan fails fast when the session token secret is missing."""
    from songtab.main import app
    with patch("songtab.main.get_token_codec", side_effect=SessionTokenError("SESSION_TOKEN_SECRET not set")):
        with pytest.raises(RuntimeError, match="SESSION_TOKEN_SECRET"):
            with TestClient(app):
                pass
    mock_init.assert_not_awaited()


def test_cors_allows_configured_origin() -> None:
    from songtab.main import app
    client = TestClient(app)
    response = client.options(
        "/api/songs",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers.get("access-control-allow-origin") == "http://localhost:5173"


def test_run_serves_on_configured_host_and_port() -> None:
    """run() hands the app to uvicorn with the host and port from settings."""
    from songtab import main
    with patch.object(main.settings, "songtab_host", "127.0.0.1"), \
            patch.object(main.settings, "songtab_port", 8123), \
            patch("uvicorn.run") as mock_run:
        main.run()
    mock_run.assert_called_once_with(main.app, host="127.0.0.1", port=8123)
