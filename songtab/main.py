"""
Songtab API

FastAPI application for managing songs, chord tabs and video links.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from typing import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from songtab.config import settings
from songtab.api.exception_handlers import register_exception_handlers
from songtab.api.routes import auth, health, songs, tabs, videos
from songtab.auth.dependencies import get_token_codec
from songtab.auth.tokens import SessionTokenError
from songtab.db import init_db, close_db


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    # Refuse to serve without a signing secret rather than 500 on every request
    try:
        get_token_codec()
    except SessionTokenError as e:
        logger.error(f"Session tokens unavailable: {e}")
        raise RuntimeError(str(e)) from e

    if not settings.google_client_id:
        logger.warning("SONGTAB_GOOGLE_CLIENT_ID not set; Google sign-in will fail")

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    # Cleanup
    logger.info("Shutting down...")
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Songs, chord tabs and video links.",
    lifespan=lifespan,
    # Disable public docs in production; set SONGTAB_DEBUG=true locally to enable
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
)

# Rate limiter lives on the auth router; slowapi looks it up on app state
app.state.limiter = auth.limiter
register_exception_handlers(app)

# Security headers middleware (added first, runs last)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
if "*" in settings.cors_origins:
    logger.warning(
        "SECURITY WARNING: CORS allows all origins. "
        "Set SONGTAB_CORS_ORIGINS to specific domains in production."
    )
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(songs.router, prefix="/api", tags=["songs"])
app.include_router(tabs.router, prefix="/api", tags=["tabs"])
app.include_router(videos.router, prefix="/api", tags=["videos"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with service info."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
    }


def run() -> None:
    """Serve the API with uvicorn on SONGTAB_SONGTAB_HOST:SONGTAB_SONGTAB_PORT."""
    import uvicorn
    uvicorn.run(app, host=settings.songtab_host, port=settings.songtab_port)


if __name__ == "__main__":
    run()
