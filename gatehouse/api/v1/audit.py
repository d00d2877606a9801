"""Audit trail retrieval (Admin only). The trail itself is append-only."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gatehouse.api.deps import require_admin
from gatehouse.core.database import get_db
from gatehouse.models import AuditLog
from gatehouse.schemas.audit import AuditEntriesResponse, AuditEntryResponse
from gatehouse.services.tokens import IdentityContext

router = APIRouter()

MAX_PAGE_SIZE = 500


@router.get("", response_model=AuditEntriesResponse)
def list_audit_entries(
    _admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    entity: str | None = None,
    entity_id: Annotated[str | None, Query(alias="entityId")] = None,
    actor_user_id: Annotated[int | None, Query(alias="actorUserId")] = None,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> AuditEntriesResponse:
    """Newest first; filter by entity type, entity id and/or actor."""
    query = db.query(AuditLog)
    if entity:
        query = query.filter(AuditLog.entity == entity)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)
    if actor_user_id is not None:
        query = query.filter(AuditLog.actor_user_id == actor_user_id)
    total = query.count()
    rows = (
        query.order_by(AuditLog.at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return AuditEntriesResponse(
        entries=[AuditEntryResponse.model_validate(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
    )
