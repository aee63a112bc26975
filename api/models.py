"""
API request and response models for TokenGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.credentials import MAX_PASSWORD_BYTES, password_too_long

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    The password is limited to MAX_PASSWORD_BYTES UTF-8 bytes, the most bcrypt
    will read. A multi-byte password can hit that limit well under 72 characters.
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, v: str) -> str:
        if password_too_long(v):
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthenticationResponse(BaseModel):
    """Response body for a successful login."""

    model_config = ConfigDict(frozen=True)

    jwt: str
    token_type: str = "bearer"
    expires_in: int
    username: str


class MeResponse(BaseModel):
    """Response for GET /api/v1/auth/me."""

    model_config = ConfigDict(frozen=True)

    username: str
    expires_at: datetime


class WelcomeResponse(BaseModel):
    """Response for GET /api/v1/welcome."""

    model_config = ConfigDict(frozen=True)

    message: str
    username: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
