"""Administrative system statistics."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gatehouse.api.deps import get_password_hasher, require_admin
from gatehouse.core.database import get_db
from gatehouse.core.security import PasswordHasher
from gatehouse.schemas.audit import SystemStatsResponse
from gatehouse.services.directory import DirectoryService
from gatehouse.services.tokens import IdentityContext

router = APIRouter()


@router.get("/stats", response_model=SystemStatsResponse)
def get_system_stats(
    _admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> SystemStatsResponse:
    """User, role and audit counts, and users per role."""
    return SystemStatsResponse.model_validate(DirectoryService(db, hasher).stats())
