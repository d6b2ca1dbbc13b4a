"""Exception handlers for the FastAPI application.

Every failing response uses the same JSON envelope:
``{"status": "error", "message": ..., "timestamp": ...}``. Not-found bodies
additionally carry ``"id": "not_found"``.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from songtab.auth.identity import IdentityProviderUnavailable
from songtab.errors import ApiError, InternalServerError, NotFoundError, error_body

logger = logging.getLogger(__name__)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render an ApiError raised by a route, dependency or service."""
    if exc.status_code >= 500:
        logger.error("Server error at %s: %s", request.url.path, exc.message)
    headers = _BEARER_CHALLENGE if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def identity_provider_unavailable_handler(
    request: Request, exc: IdentityProviderUnavailable
) -> JSONResponse:
    """The identity provider is misconfigured or unreachable: a server-side failure."""
    logger.error("Identity provider unavailable at %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalServerError().to_body(),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON, or query/path parameters of the wrong type."""
    logger.warning("Request validation failed at %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request"),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-level errors such as unknown routes or wrong methods."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = error_body(message, id=NotFoundError.error_id)
    else:
        content = error_body(message)
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded at %s: %s", request.url.path, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body("Too Many Requests"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: anything no other handler claimed, e.g. a refused database connection."""
    logger.error(
        "Unhandled %s at %s %s: %s",
        type(exc).__name__, request.method, request.url.path, exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InternalServerError().to_body(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the error-envelope handlers on the application."""
    # Starlette types handlers as (Request, Exception); each handler narrows to the class it is registered for.
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        IdentityProviderUnavailable,
        identity_provider_unavailable_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
