"""
Sign-in endpoint.

Exchanges a Google ID token for a Songtab session token. The user row is
created on first sign-in.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.auth.dependencies import get_token_codec
from songtab.auth.identity import (
    IdentityVerificationError,
    IdentityVerifier,
    get_identity_verifier,
)
from songtab.auth.tokens import SessionTokenCodec
from songtab.config import settings
from songtab.db import get_db
from songtab.errors import InternalServerError, UnauthorizedError, ValidationError
from songtab.models.auth import GoogleLoginRequest, LoginResponse, login_response
from songtab.services import auth as auth_service

router = APIRouter()
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


@router.post("/auth/google", response_model=LoginResponse)
@limiter.limit(settings.login_rate_limit)
async def google_login(
    request: Request,
    body: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    codec: SessionTokenCodec = Depends(get_token_codec),
) -> LoginResponse:
    """Verify a Google ID token and return a session token for the user."""
    if not body.token or not body.token.strip():
        raise ValidationError("token is required")

    try:
        result = await auth_service.login(db, verifier, codec, body.token)
    except IdentityVerificationError as e:
        logger.warning("Google sign-in rejected: %s", e)
        raise UnauthorizedError("Invalid identity token")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to sign in user: {e}", exc_info=True)
        raise InternalServerError()

    return login_response(result)
