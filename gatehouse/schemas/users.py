"""Request/response schemas for identity administration."""

from pydantic import Field

from gatehouse.core.security import (
    EMAIL_MAX_LEN,
    FULL_NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from gatehouse.schemas.auth import UserResponse
from gatehouse.schemas.base import CamelModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class CreateUserRequest(CamelModel):
    """Admin-created identity."""

    full_name: str = Field(..., min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    is_active: bool = True


class UpdateUserRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: str | None = Field(
        default=None, min_length=3, max_length=EMAIL_MAX_LEN, pattern=EMAIL_PATTERN
    )
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    is_active: bool | None = None


class AssignRoleRequest(CamelModel):
    role_id: int = Field(..., ge=1)


class UsersListResponse(CamelModel):
    """Response for GET /users."""

    users: list[UserResponse]


class MessageResponse(CamelModel):
    message: str


class UpdateProfileRequest(CamelModel):
    """Self-service update of the caller's own account; omitted fields are left unchanged."""

    full_name: str | None = Field(default=None, min_length=1, max_length=FULL_NAME_MAX_LEN)
    email: str | None = Field(
        default=None, min_length=3, max_length=EMAIL_MAX_LEN, pattern=EMAIL_PATTERN
    )
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
