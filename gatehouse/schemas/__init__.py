"""Pydantic request/response schemas."""

from gatehouse.schemas.audit import (
    AuditEntriesResponse,
    AuditEntryResponse,
    RoleCount,
    SystemStatsResponse,
)
from gatehouse.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from gatehouse.schemas.health import HealthResponse
from gatehouse.schemas.roles import CreateRoleRequest, RoleResponse, UpdateRoleRequest
from gatehouse.schemas.users import (
    AssignRoleRequest,
    CreateUserRequest,
    MessageResponse,
    UpdateProfileRequest,
    UpdateUserRequest,
    UsersListResponse,
)

__all__ = [
    "AssignRoleRequest",
    "AuditEntriesResponse",
    "AuditEntryResponse",
    "CreateRoleRequest",
    "CreateUserRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "RoleCount",
    "RoleResponse",
    "SystemStatsResponse",
    "UpdateProfileRequest",
    "UpdateRoleRequest",
    "UpdateUserRequest",
    "UserResponse",
    "UsersListResponse",
]
