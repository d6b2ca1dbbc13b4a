"""Pytest configuration and fixtures."""
import os

# Settings are read at import time; configure before importing songtab.
os.environ.setdefault("SONGTAB_SESSION_TOKEN_SECRET", "test-secret-for-unit-tests-only-32char")
os.environ.setdefault("SONGTAB_GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from songtab.main import app
from songtab.api.routes.auth import limiter
from songtab.auth.dependencies import get_token_codec
from songtab.auth.identity import (
    IdentityClaims,
    IdentityVerificationError,
    get_identity_verifier,
)
from songtab.db import database
from songtab.db.database import Base, get_db


USER_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_USER_ID = "550e8400-e29b-41d4-a716-446655440001"


class FakeIdentityVerifier:
    """Accepts tokens of the form ``valid:<subject>``; rejects everything else."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def verify(self, token: str) -> IdentityClaims:
        self.calls.append(token)
        if not token.startswith("valid:"):
            raise IdentityVerificationError("Token used too late")
        subject = token.split(":", 1)[1]
        return IdentityClaims(
            subject=subject,
            name=f"User {subject}",
            email=f"{subject}@example.com",
        )


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Rate-limit counters are in-memory and shared across tests."""
    limiter.reset()
    yield


@pytest_asyncio.fixture
async def db_session():
    """Create an in-memory test database session."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    old_engine = database._engine
    old_factory = database._async_session_factory
    database._engine = engine
    database._async_session_factory = async_session_factory
    try:
        async with async_session_factory() as session:
            async def override_get_db():
                yield session
            app.dependency_overrides[get_db] = override_get_db
            yield session
            app.dependency_overrides.clear()
    finally:
        database._engine = old_engine
        database._async_session_factory = old_factory
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def identity_verifier(db_session):
    """Replace Google verification with a deterministic fake."""
    verifier = FakeIdentityVerifier()
    app.dependency_overrides[get_identity_verifier] = lambda: verifier
    return verifier


@pytest_asyncio.fixture
async def client(db_session, identity_verifier):
    """Create an async test client. Depends on db_session so routes use the test DB."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# -----------------------------------------------------------------------------
# Auth fixtures
# -----------------------------------------------------------------------------

@pytest_asyncio.fixture
async def test_user(db_session):
    """A user who has signed in before."""
    from songtab.db.models import User
    user = User(id=USER_ID, external_login_id="g-test-user")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(db_session):
    from songtab.db.models import User
    user = User(id=OTHER_USER_ID, external_login_id="g-other-user")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def auth_headers(test_user):
    """Headers with a session token for test_user."""
    token = get_token_codec().issue(USER_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_user):
    token = get_token_codec().issue(OTHER_USER_ID)
    return {"Authorization": f"Bearer {token}"}
