"""Request/response schemas for auth endpoints and the public identity projection."""

from datetime import datetime

from pydantic import AliasChoices, Field

from gatehouse.core.security import (
    EMAIL_MAX_LEN,
    FULL_NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from gatehouse.schemas.base import CamelModel


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class RefreshTokenRequest(CamelModel):
    """Refresh token issued by a previous login or refresh."""

    refresh_token: str = Field(..., max_length=512, description="Opaque refresh token")


class RegisterRequest(CamelModel):
    """Self-registration; the account starts active with the default role."""

    full_name: str = Field(..., min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UserResponse(CamelModel):
    """Public identity projection. Never carries the password hash."""

    id: int
    full_name: str
    email: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    roles: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("roles", "role_names")
    )


class LoginResponse(CamelModel):
    """Token pair returned by login and refresh."""

    access_token: str = Field(..., description="JWT access token (Bearer)")
    refresh_token: str = Field(..., description="Opaque refresh token")
    expires_at: datetime = Field(..., description="Access token expiry (UTC, ISO-8601)")
    user: UserResponse
