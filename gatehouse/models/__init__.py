"""SQLAlchemy ORM models."""

from gatehouse.models.audit_log import AuditLog
from gatehouse.models.base import Base
from gatehouse.models.refresh_token import RefreshToken
from gatehouse.models.role import Role, UserRole
from gatehouse.models.user import User

__all__ = ["AuditLog", "Base", "RefreshToken", "Role", "User", "UserRole"]
