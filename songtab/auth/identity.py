"""
External identity verification.

The frontend signs users in with Google and sends the resulting ID token to
``POST /api/auth/google``. This module turns that token into verified subject
claims. Google signs ID tokens with RS256; its public keys are published as a
JWKS document and fetched through PyJWT's ``PyJWKClient``.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import jwt
from jwt.exceptions import PyJWKClientConnectionError

from songtab.config import settings

logger = logging.getLogger(__name__)

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class IdentityVerificationError(Exception):
    """The external identity token is invalid, expired, or not meant for us."""
    pass


class IdentityProviderUnavailable(Exception):
    """The identity provider's signing keys could not be fetched."""
    pass


@dataclass(frozen=True)
class IdentityClaims:
    """Verified subject claims from the identity provider."""

    subject: str
    name: str | None = None
    email: str | None = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> IdentityClaims:
        ...


class GoogleIdentityVerifier:
    """Verifies Google ID tokens issued for ``client_id``."""

    def __init__(
        self,
        client_id: str,
        certs_url: str = GOOGLE_CERTS_URL,
        issuers: tuple[str, ...] = GOOGLE_ISSUERS,
    ) -> None:
        self._client_id = client_id
        self._issuers = issuers
        self._jwks = jwt.PyJWKClient(certs_url, cache_keys=True)

    async def verify(self, token: str) -> IdentityClaims:
        # PyJWKClient fetches keys with blocking urllib; keep it off the event loop.
        return await asyncio.to_thread(self._verify_sync, token)

    def _verify_sync(self, token: str) -> IdentityClaims:
        try:
            signing_key = self._jwks.get_signing_key_from_jwt(token)
            payload: dict[str, Any] = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self._client_id,
                options={"require": ["exp", "iat", "sub"]},
            )
        except PyJWKClientConnectionError as e:
            raise IdentityProviderUnavailable(f"Could not fetch Google signing keys: {e}") from e
        except jwt.PyJWTError as e:
            raise IdentityVerificationError(f"Invalid identity token: {e}") from e

        if payload.get("iss") not in self._issuers:
            raise IdentityVerificationError(f"Unexpected issuer: {payload.get('iss')!r}")

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise IdentityVerificationError("Identity token has no subject")

        name = payload.get("name")
        email = payload.get("email")
        return IdentityClaims(
            subject=subject,
            name=name if isinstance(name, str) else None,
            email=email if isinstance(email, str) else None,
        )


@lru_cache()
def get_identity_verifier() -> IdentityVerifier:
    """FastAPI dependency returning the process-wide Google verifier."""
    if not settings.google_client_id:
        raise IdentityProviderUnavailable("SONGTAB_GOOGLE_CLIENT_ID not configured")
    return GoogleIdentityVerifier(settings.google_client_id)
