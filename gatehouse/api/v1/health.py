"""Health check endpoint with database connectivity and audit failure count."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gatehouse.api.deps import get_app_settings, get_audit_recorder
from gatehouse.core.config import Settings
from gatehouse.core.database import check_db_connected, get_db
from gatehouse.schemas.health import HealthResponse
from gatehouse.services.audit import AuditRecorder

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; auditFailures > 0 means audit writes are being lost.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
        audit_failures=recorder.failure_count,
    )
