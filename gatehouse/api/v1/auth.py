"""Login, refresh, registration and current-identity endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gatehouse.api.deps import (
    get_app_settings,
    get_audit_recorder,
    get_identity,
    get_password_hasher,
    get_request_meta,
    get_token_issuer,
)
from gatehouse.core.config import Settings
from gatehouse.core.database import get_db
from gatehouse.core.errors import AuthenticationFailure
from gatehouse.core.security import PasswordHasher
from gatehouse.models.audit_log import AuditAction, AuditEntity
from gatehouse.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.directory import DirectoryService
from gatehouse.services.sessions import AuthFailure, SessionCredentialPair, SessionService
from gatehouse.services.tokens import IdentityContext, TokenIssuer

router = APIRouter()


def _login_response(pair: SessionCredentialPair) -> LoginResponse:
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_at=pair.expires_at,
        user=UserResponse.model_validate(pair.user),
    )


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns an access/refresh token pair.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    result = SessionService(db, hasher, issuer).login(body.email, body.password)
    if isinstance(result, AuthFailure):
        raise AuthenticationFailure(result.message)
    return _login_response(result)


@router.post("/refresh", response_model=LoginResponse)
def refresh(
    body: RefreshTokenRequest,
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> LoginResponse:
    """Exchange a refresh token for a new pair. Works with an expired access token."""
    result = SessionService(db, hasher, issuer).refresh(body.refresh_token)
    if isinstance(result, AuthFailure):
        raise AuthenticationFailure(result.message)
    return _login_response(result)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    recorder: Annotated[AuditRecorder, Depends(get_audit_recorder)],
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> UserResponse:
    """Create an active account with the default role. 409 if the email is taken."""
    user = DirectoryService(db, hasher).register(
        body.full_name, body.email, body.password, settings.DEFAULT_ROLE_NAME
    )
    response = UserResponse.model_validate(user)
    recorder.record(
        AuditEntity.USER,
        user.id,
        AuditAction.REGISTER,
        actor_id=None,
        after=response,
        request_meta=meta,
    )
    return response


@router.get("/me", response_model=UserResponse)
def me(
    identity: Annotated[IdentityContext, Depends(get_identity)],
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> UserResponse:
    """Current identity as stored now (roles may differ from the token's until refresh)."""
    user = DirectoryService(db, hasher).get_user(identity.subject_id)
    return UserResponse.model_validate(user)
