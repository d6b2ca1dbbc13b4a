"""
Google sign-in.

Exchanges a verified Google identity for a local user and a session token.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from songtab.auth.identity import IdentityVerifier
from songtab.auth.tokens import SessionTokenCodec
from songtab.db.models import User, generate_uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    name: Optional[str]
    email: Optional[str]
    user_id: str
    session_token: str


async def find_user_by_external_id(db: AsyncSession, external_login_id: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.external_login_id == external_login_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_user(db: AsyncSession, external_login_id: str) -> User:
    """
    Return the user for an external subject, creating it on first sight.

    Two first logins for the same subject can race between the lookup and
    the insert. The unique constraint on ``external_login_id`` rejects the
    loser, which rolls back and reads the winner's row instead.
    """
    user = await find_user_by_external_id(db, external_login_id)
    if user:
        return user

    user = User(id=generate_uuid(), external_login_id=external_login_id)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Concurrent first login detected, reusing existing user")
        existing = await find_user_by_external_id(db, external_login_id)
        if existing is None:
            raise
        return existing

    logger.info(f"Created user {user.id[:8]} on first sign-in")
    return user


async def login(
    db: AsyncSession,
    verifier: IdentityVerifier,
    codec: SessionTokenCodec,
    external_token: str,
) -> LoginResult:
    """
    Verify an external identity token and issue a session token.

    Args:
        db: Database session
        verifier: Identity provider verifier
        codec: Session token codec
        external_token: Opaque ID token from the identity provider

    Returns:
        LoginResult with the provider's display name and email, the local
        user id and a freshly issued session token

    Raises:
        IdentityVerificationError: The external token was rejected
        IdentityProviderUnavailable: The provider could not be reached
    """
    identity = await verifier.verify(external_token)
    user = await get_or_create_user(db, identity.subject)
    user_id = user.id

    session_token = codec.issue(user_id)
    logger.info(f"User {user_id[:8]} signed in")

    return LoginResult(
        name=identity.name,
        email=identity.email,
        user_id=user_id,
        session_token=session_token,
    )
