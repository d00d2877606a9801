"""Role administration (Admin only, audited)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gatehouse.api.deps import (
    get_audit_recorder,
    get_password_hasher,
    get_request_meta,
    require_admin,
)
from gatehouse.core.database import get_db
from gatehouse.core.security import PasswordHasher
from gatehouse.models.audit_log import AuditAction, AuditEntity
from gatehouse.schemas.roles import CreateRoleRequest, RoleResponse, UpdateRoleRequest
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.directory import DirectoryService
from gatehouse.services.tokens import IdentityContext

router = APIRouter()


@router.get("", response_model=list[RoleResponse])
def list_roles(
    _admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> list[RoleResponse]:
    return [RoleResponse.model_validate(r) for r in DirectoryService(db, hasher).list_roles()]


@router.get("/{role_id}", response_model=RoleResponse)
def get_role(
    role_id: int,
    _admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> RoleResponse:
    return RoleResponse.model_validate(DirectoryService(db, hasher).get_role(role_id))


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    body: CreateRoleRequest,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> RoleResponse:
    """Create a role. 409 if the name is taken."""
    role = DirectoryService(db, hasher).create_role(body.name, body.description)
    response = RoleResponse.model_validate(role)
    recorder.record(
        AuditEntity.ROLE,
        role.id,
        AuditAction.CREATE,
        actor_id=admin.subject_id,
        after=response,
        request_meta=meta,
    )
    return response


@router.patch("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    body: UpdateRoleRequest,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> RoleResponse:
    directory = DirectoryService(db, hasher)
    before = RoleResponse.model_validate(directory.get_role(role_id))
    after = RoleResponse.model_validate(
        directory.update_role(role_id, name=body.name, description=body.description)
    )
    recorder.record(
        AuditEntity.ROLE,
        role_id,
        AuditAction.UPDATE,
        actor_id=admin.subject_id,
        before=before,
        after=after,
        request_meta=meta,
    )
    return after


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(
    role_id: int,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> Response:
    """Delete a role nobody holds. 409 while any user holds it."""
    directory = DirectoryService(db, hasher)
    before = RoleResponse.model_validate(directory.get_role(role_id))
    directory.delete_role(role_id)
    recorder.record(
        AuditEntity.ROLE,
        role_id,
        AuditAction.DELETE,
        actor_id=admin.subject_id,
        before=before,
        request_meta=meta,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
