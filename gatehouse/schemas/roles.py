"""Request/response schemas for role administration."""

from datetime import datetime

from pydantic import Field

from gatehouse.schemas.base import CamelModel


class CreateRoleRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class UpdateRoleRequest(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=200)


class RoleResponse(CamelModel):
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
