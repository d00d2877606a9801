"""Identity administration: CRUD on users and role assignment (audited)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from gatehouse.api.deps import (
    get_audit_recorder,
    get_password_hasher,
    get_request_meta,
    require_admin,
    require_admin_or_manager,
)
from gatehouse.core.database import get_db
from gatehouse.core.security import PasswordHasher
from gatehouse.models.audit_log import AuditAction, AuditEntity
from gatehouse.schemas.auth import UserResponse
from gatehouse.schemas.users import (
    AssignRoleRequest,
    CreateUserRequest,
    MessageResponse,
    UpdateUserRequest,
    UsersListResponse,
)
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.directory import DirectoryService
from gatehouse.services.tokens import IdentityContext

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _reader: Annotated[IdentityContext, Depends(require_admin_or_manager)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> UsersListResponse:
    """List all users (Admin or Manager)."""
    users = DirectoryService(db, hasher).list_users()
    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    _reader: Annotated[IdentityContext, Depends(require_admin_or_manager)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> UserResponse:
    return UserResponse.model_validate(DirectoryService(db, hasher).get_user(user_id))


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> UserResponse:
    """Create a user (Admin). 409 if the email is taken."""
    user = DirectoryService(db, hasher).create_user(
        body.full_name, body.email, body.password, is_active=body.is_active
    )
    response = UserResponse.model_validate(user)
    recorder.record(
        AuditEntity.USER,
        user.id,
        AuditAction.CREATE,
        actor_id=admin.subject_id,
        after=response,
        request_meta=meta,
    )
    return response


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> UserResponse:
    """Update name, email, password or active flag (Admin)."""
    directory = DirectoryService(db, hasher)
    before = UserResponse.model_validate(directory.get_user(user_id))
    user = directory.update_user(
        user_id,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
        is_active=body.is_active,
    )
    after = UserResponse.model_validate(user)
    recorder.record(
        AuditEntity.USER,
        user_id,
        AuditAction.UPDATE,
        actor_id=admin.subject_id,
        before=before,
        after=after,
        request_meta=meta,
    )
    return after


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> Response:
    """Delete a user and its memberships (Admin). Its audit history is kept."""
    directory = DirectoryService(db, hasher)
    before = UserResponse.model_validate(directory.get_user(user_id))
    directory.delete_user(user_id)
    recorder.record(
        AuditEntity.USER,
        user_id,
        AuditAction.DELETE,
        actor_id=admin.subject_id,
        before=before,
        request_meta=meta,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/roles", response_model=MessageResponse)
def assign_role(
    user_id: int,
    body: AssignRoleRequest,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> MessageResponse:
    """Assign a role (Admin). 404 for unknown user/role, 409 if already held."""
    membership = DirectoryService(db, hasher).assign_role(user_id, body.role_id)
    recorder.record(
        AuditEntity.USER_ROLE,
        f"{user_id}:{body.role_id}",
        AuditAction.ASSIGN,
        actor_id=admin.subject_id,
        after=f"User {membership.user.full_name} assigned role {membership.role.name}",
        request_meta=meta,
    )
    return MessageResponse(message="Role assigned successfully")


@router.delete("/{user_id}/roles/{role_id}", response_model=MessageResponse)
def remove_role(
    user_id: int,
    role_id: int,
    admin: Annotated[IdentityContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> MessageResponse:
    """Remove a role (Admin). 404 if the user does not hold it."""
    user_name, role_name = DirectoryService(db, hasher).remove_role(user_id, role_id)
    recorder.record(
        AuditEntity.USER_ROLE,
        f"{user_id}:{role_id}",
        AuditAction.REMOVE,
        actor_id=admin.subject_id,
        before=f"User {user_name} had role {role_name}",
        request_meta=meta,
    )
    return MessageResponse(message="Role removed successfully")
