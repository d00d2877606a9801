"""FastAPI dependencies: the authorization gate and access to app-wide services.

get_identity() validates the Bearer token and raises 401 when it is absent or
rejected. require_roles(...) wraps it and raises 403 when the identity holds
none of the required roles. Both run before the route handler body.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gatehouse.core.config import Settings
from gatehouse.core.errors import AuthenticationFailure, AuthorizationFailure
from gatehouse.core.security import PasswordHasher
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.authorization import Deny, authorize
from gatehouse.services.tokens import (
    IdentityContext,
    TokenIssuer,
    TokenValidator,
    Unauthenticated,
)

ADMIN = "Admin"
MANAGER = "Manager"

security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_token_validator(request: Request) -> TokenValidator:
    return request.app.state.token_validator


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_audit_recorder(request: Request) -> AuditRecorder:
    return request.app.state.audit_recorder


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta.from_request(request)


def get_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    validator: Annotated[TokenValidator, Depends(get_token_validator)],
) -> IdentityContext:
    """Dependency: require a valid Bearer access token. Raises 401 if missing or invalid."""
    if credentials is None:
        raise AuthenticationFailure("Not authenticated")
    result = validator.authenticate_request(credentials.credentials)
    if isinstance(result, Unauthenticated):
        raise AuthenticationFailure("Invalid or expired token")
    request.state.identity = result
    return result


def require_roles(*roles: str) -> Callable[..., IdentityContext]:
    """
    Build a dependency that allows identities holding any of roles.

    With no roles, any authenticated identity is allowed. Raises 403 otherwise.
    """
    required = frozenset(roles)

    def dependency(
        identity: Annotated[IdentityContext, Depends(get_identity)],
    ) -> IdentityContext:
        decision = authorize(identity, required)
        if isinstance(decision, Deny):
            raise AuthorizationFailure(decision.reason)
        return identity

    return dependency


require_admin = require_roles(ADMIN)
require_admin_or_manager = require_roles(ADMIN, MANAGER)
