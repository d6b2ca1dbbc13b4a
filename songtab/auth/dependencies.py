"""
FastAPI Authentication Dependencies

Provides dependency injection for protecting endpoints with session token
validation.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from songtab.auth.tokens import SessionClaims, SessionTokenCodec
from songtab.config import settings
from songtab.errors import UnauthorizedError

logger = logging.getLogger(__name__)

# HTTPBearer extracts the token from "Authorization: Bearer <token>" header
# auto_error=False so the 401 uses our error envelope instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_token_codec() -> SessionTokenCodec:
    """Process-wide session token codec built from settings."""
    return SessionTokenCodec.from_settings(settings)


async def require_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    codec: SessionTokenCodec = Depends(get_token_codec),
) -> SessionClaims:
    """
    FastAPI dependency that validates session tokens.

    Usage:
        @router.get("/songs")
        async def list_songs(session: SessionClaims = Depends(require_session)):
            user_id = session["user_id"]

    Returns:
        Decoded session claims

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if credentials is None:
        logger.warning("Access attempt without session token")
        raise UnauthorizedError()

    claims = codec.validate(credentials.credentials)
    if claims is None:
        logger.warning("Invalid or expired session token")
        raise UnauthorizedError()

    return claims
