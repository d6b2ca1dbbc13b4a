"""Request/response models for the sign-in route."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from songtab.services.auth import LoginResult


class GoogleLoginRequest(BaseModel):
    """Body of POST /api/auth/google."""
    token: Optional[str] = Field(default=None, description="Google ID token obtained by the frontend")


class LoginResponse(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    user_id: str
    session_token: str


def login_response(result: LoginResult) -> LoginResponse:
    return LoginResponse(
        name=result.name,
        email=result.email,
        user_id=result.user_id,
        session_token=result.session_token,
    )
