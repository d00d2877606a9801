"""Response schemas for audit trail retrieval and system statistics."""

from datetime import datetime

from gatehouse.schemas.base import CamelModel


class AuditEntryResponse(CamelModel):
    id: int
    actor_user_id: int | None = None
    entity: str
    entity_id: str
    action: str
    before: str | None = None
    after: str | None = None
    at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


class AuditEntriesResponse(CamelModel):
    entries: list[AuditEntryResponse]
    total: int
    limit: int
    offset: int


class RoleCount(CamelModel):
    role: str
    count: int


class SystemStatsResponse(CamelModel):
    total_users: int
    active_users: int
    inactive_users: int
    total_roles: int
    total_audit_logs: int
    users_by_role: list[RoleCount]
