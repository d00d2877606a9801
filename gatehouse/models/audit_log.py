"""ORM model for the append-only audit trail."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from gatehouse.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuditLog(Base):
    """
    Immutable record of a state-changing action (or of an inbound request).

    Invariants:
    - Written once by the audit recorder; never updated or deleted by the application
    - actor_user_id is NULL for anonymous/system actions and after the actor is deleted
    - before/after are opaque serialized snapshots (JSON or plain text)
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_entity_entity_id", "entity", "entity_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    entity = Column(String(100), nullable=False)
    entity_id = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    before = Column(Text, nullable=True)
    after = Column(Text, nullable=True)
    at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    ip_address = Column(String(200), nullable=True)
    user_agent = Column(String(500), nullable=True)


class AuditAction:
    """Action names used by the handlers and the request interceptor."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    REGISTER = "Register"
    ASSIGN = "Assign"
    REMOVE = "Remove"
    DEACTIVATE = "Deactivate"
    UPDATE_PROFILE = "UpdateProfile"
    DELETE_ACCOUNT = "DeleteAccount"
    REQUEST = "Request"


class AuditEntity:
    """Entity type names recorded in audit rows."""

    USER = "User"
    ROLE = "Role"
    USER_ROLE = "UserRole"
    REQUEST = "Request"
