"""Best-effort audit recording.

record() writes one audit row in its own session, separate from the business
transaction, and must be called after that transaction commits. A failed write
never reaches the caller: it is logged at ERROR with traceback on the
"gatehouse.audit" logger and counted in failure_count.
"""

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gatehouse.core.errors import AuditRecordingFailure
from gatehouse.models import AuditLog

logger = logging.getLogger("gatehouse.audit")

# Column limits of audit_logs.
ENTITY_MAX_LEN = 100
ENTITY_ID_MAX_LEN = 50
ACTION_MAX_LEN = 50
IP_ADDRESS_MAX_LEN = 200
USER_AGENT_MAX_LEN = 500


@dataclass(frozen=True)
class RequestMeta:
    """Source address and user agent of the request that caused an audited action."""

    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestMeta":
        return cls(
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )


def serialize_snapshot(value: Any) -> str | None:
    """Render a before/after snapshot as text: str as-is, models as JSON, anything else via json."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json(by_alias=True)
    return json.dumps(value, default=str, sort_keys=True)


def _clip(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value[:limit]


class AuditRecorder:
    """Append-only audit writer whose failures are isolated from the caller."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        enabled: bool = True,
    ) -> None:
        self.session_factory = session_factory
        self.enabled = enabled
        self._failures = 0
        self._lock = threading.Lock()

    @property
    def failure_count(self) -> int:
        return self._failures

    def record(
        self,
        entity: str,
        entity_id: str | int,
        action: str,
        *,
        actor_id: int | None = None,
        before: Any = None,
        after: Any = None,
        request_meta: RequestMeta | None = None,
    ) -> bool:
        """
        Write one audit entry. Returns True when stored, False when disabled or failed.

        Never raises.
        """
        if not self.enabled:
            return False
        try:
            self._write(entity, str(entity_id), action, actor_id, before, after, request_meta)
            return True
        except Exception as e:
            with self._lock:
                self._failures += 1
            logger.error(
                "Audit recording failed: entity=%s entity_id=%s action=%s actor_id=%s",
                entity,
                entity_id,
                action,
                actor_id,
                exc_info=e,
            )
            return False

    def _write(
        self,
        entity: str,
        entity_id: str,
        action: str,
        actor_id: int | None,
        before: Any,
        after: Any,
        request_meta: RequestMeta | None,
    ) -> None:
        try:
            before_text = serialize_snapshot(before)
            after_text = serialize_snapshot(after)
        except (TypeError, ValueError) as e:
            raise AuditRecordingFailure(f"Snapshot could not be serialized: {e}") from e

        meta = request_meta or RequestMeta()
        entry = AuditLog(
            actor_user_id=actor_id,
            entity=_clip(entity, ENTITY_MAX_LEN),
            entity_id=_clip(entity_id, ENTITY_ID_MAX_LEN),
            action=_clip(action, ACTION_MAX_LEN),
            before=before_text,
            after=after_text,
            at=datetime.now(UTC),
            ip_address=_clip(meta.ip_address, IP_ADDRESS_MAX_LEN),
            user_agent=_clip(meta.user_agent, USER_AGENT_MAX_LEN),
        )
        db = self.session_factory()
        try:
            db.add(entry)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                if actor_id is None:
                    raise
                # Actor deleted in the same request (e.g. own account): keep the row, drop the link.
                db.add(_without_actor(entry))
                db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _without_actor(entry: AuditLog) -> AuditLog:
    return AuditLog(
        actor_user_id=None,
        entity=entry.entity,
        entity_id=entry.entity_id,
        action=entry.action,
        before=entry.before,
        after=entry.after,
        at=entry.at,
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
    )
