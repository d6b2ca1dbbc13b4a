"""
Songtab Authentication Module

Google identity verification, JWT session tokens, and the request guard.
"""
from songtab.auth.tokens import (
    SessionClaims,
    SessionTokenCodec,
    SessionTokenError,
)
from songtab.auth.identity import (
    GoogleIdentityVerifier,
    IdentityClaims,
    IdentityProviderUnavailable,
    IdentityVerificationError,
    IdentityVerifier,
    get_identity_verifier,
)
from songtab.auth.dependencies import get_token_codec, require_session

__all__ = [
    "SessionClaims",
    "SessionTokenCodec",
    "SessionTokenError",
    "GoogleIdentityVerifier",
    "IdentityClaims",
    "IdentityProviderUnavailable",
    "IdentityVerificationError",
    "IdentityVerifier",
    "get_identity_verifier",
    "get_token_codec",
    "require_session",
]
