"""
Session Token Generation and Validation

Provides signed JWT session tokens for users who signed in with Google.
Tokens are self-contained and don't require database storage: there is no
revocation list, so a token stays valid until it expires.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from typing_extensions import TypedDict

from songtab.config import Settings

logger = logging.getLogger(__name__)

SESSION_TOKEN_TYPE = "session"


class SessionTokenError(Exception):
    """Raised when the codec cannot be built or a token cannot be issued."""
    pass


class SessionClaims(TypedDict):
    """Decoded payload returned by SessionTokenCodec.validate."""

    type: str
    user_id: str
    iat: int
    exp: int


class SessionTokenCodec:
    """Issues and validates HS256 session tokens.

    The signing configuration is passed in explicitly; use
    :meth:`from_settings` to build one from the application settings.
    """

    def __init__(
        self,
        secret: str | None,
        algorithm: str = "HS256",
        expiry: timedelta = timedelta(hours=24),
    ) -> None:
        if not secret:
            raise SessionTokenError(
                "SONGTAB_SESSION_TOKEN_SECRET not configured. "
                "Generate one with: openssl rand -hex 32"
            )
        if expiry <= timedelta(0):
            raise SessionTokenError("Session token expiry must be positive")
        self._secret = secret
        self._algorithm = algorithm
        self._expiry = expiry

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenCodec":
        return cls(
            secret=settings.session_token_secret,
            algorithm=settings.session_token_algorithm,
            expiry=timedelta(hours=settings.session_token_expiry_hours),
        )

    @property
    def expiry(self) -> timedelta:
        return self._expiry

    def issue(self, user_id: str) -> str:
        """
        Issue a signed session token for a user.

        Args:
            user_id: Local user UUID

        Returns:
            Signed JWT string carrying ``user_id``, ``iat`` and ``exp``
        """
        if not user_id:
            raise SessionTokenError("user_id is required to issue a session token")

        now = datetime.now(timezone.utc)
        payload = {
            "type": SESSION_TOKEN_TYPE,
            "user_id": user_id,
            "iat": int(now.timestamp()),
            "exp": int((now + self._expiry).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate(self, token: str | None) -> SessionClaims | None:
        """
        Validate a session token.

        Returns:
            The decoded claims, or None when the token is missing, malformed,
            tampered with, expired, or carries the wrong claim shape.
        """
        if not token:
            return None

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug("Session token rejected: %s", e)
            return None

        # jwt.decode() returns dict[str, Any]; narrow each claim explicitly
        # rather than coercing so malformed tokens are rejected.
        raw_type = payload.get("type")
        raw_user_id = payload.get("user_id")
        raw_iat = payload.get("iat")
        raw_exp = payload.get("exp")
        if raw_type != SESSION_TOKEN_TYPE:
            return None
        if not isinstance(raw_user_id, str) or not raw_user_id:
            return None
        if not isinstance(raw_iat, int) or not isinstance(raw_exp, int):
            return None

        return SessionClaims(type=raw_type, user_id=raw_user_id, iat=raw_iat, exp=raw_exp)
