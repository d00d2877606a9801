"""Self-service profile operations for any authenticated identity."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gatehouse.api.deps import (
    get_audit_recorder,
    get_password_hasher,
    get_request_meta,
    require_roles,
)
from gatehouse.core.database import get_db
from gatehouse.core.security import PasswordHasher
from gatehouse.models.audit_log import AuditAction, AuditEntity
from gatehouse.schemas.auth import UserResponse
from gatehouse.schemas.users import MessageResponse, UpdateProfileRequest
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.directory import DirectoryService
from gatehouse.services.tokens import IdentityContext

router = APIRouter()

require_identity = require_roles()


@router.get("", response_model=UserResponse)
def get_profile(
    identity: Annotated[IdentityContext, Depends(require_identity)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> UserResponse:
    return UserResponse.model_validate(DirectoryService(db, hasher).get_user(identity.subject_id))


@router.patch("", response_model=UserResponse)
def update_profile(
    body: UpdateProfileRequest,
    identity: Annotated[IdentityContext, Depends(require_identity)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> UserResponse:
    """Change the caller's name, email or password. 409 if the email is taken."""
    directory = DirectoryService(db, hasher)
    before = UserResponse.model_validate(directory.get_user(identity.subject_id))
    user = directory.update_user(
        identity.subject_id,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
    )
    after = UserResponse.model_validate(user)
    recorder.record(
        AuditEntity.USER,
        identity.subject_id,
        AuditAction.UPDATE_PROFILE,
        actor_id=identity.subject_id,
        before=before,
        after=after,
        request_meta=meta,
    )
    return after


@router.delete("/account", response_model=MessageResponse)
def delete_account(
    identity: Annotated[IdentityContext, Depends(require_identity)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> MessageResponse:
    """
    Delete the caller's account with its memberships and refresh tokens.
    The audit entry is kept; its actor link is NULL since the actor is gone.
    """
    directory = DirectoryService(db, hasher)
    before = UserResponse.model_validate(directory.get_user(identity.subject_id))
    directory.delete_user(identity.subject_id)
    recorder.record(
        AuditEntity.USER,
        identity.subject_id,
        AuditAction.DELETE_ACCOUNT,
        actor_id=identity.subject_id,
        before=before,
        request_meta=meta,
    )
    return MessageResponse(message="Account deleted successfully")


@router.patch("/deactivate", response_model=UserResponse)
def deactivate_own_account(
    identity: Annotated[IdentityContext, Depends(require_identity)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> UserResponse:
    """
    Deactivate the caller's account. Outstanding access tokens stay valid until
    they expire; refresh and login stop working immediately.
    """
    directory = DirectoryService(db, hasher)
    before = UserResponse.model_validate(directory.get_user(identity.subject_id))
    after = UserResponse.model_validate(directory.deactivate_user(identity.subject_id))
    recorder.record(
        AuditEntity.USER,
        identity.subject_id,
        AuditAction.DEACTIVATE,
        actor_id=identity.subject_id,
        before=before,
        after=after,
        request_meta=meta,
    )
    return after
