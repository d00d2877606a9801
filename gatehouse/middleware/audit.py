"""Request-boundary audit interceptor: one coarse audit row per inbound request.

Paths on the skip-list (health, docs, login and refresh, which carry
credentials) are passed straight through before any recording work. The row is
written after the response is produced so the actor set by the authorization
gate is known; recording failures are absorbed by the AuditRecorder.
"""

import json
import logging

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from gatehouse.models.audit_log import AuditAction, AuditEntity
from gatehouse.services.audit import AuditRecorder, RequestMeta
from gatehouse.services.tokens import IdentityContext, TokenValidator

logger = logging.getLogger(__name__)

# Always skipped, independent of the API prefix.
BASE_SKIP_PATHS = ("/docs", "/redoc", "/openapi.json", "/favicon.ico", "/health")


def default_skip_paths(api_prefix: str, extra: list[str] | tuple[str, ...] = ()) -> tuple[str, ...]:
    """Skip-list for an app mounted under api_prefix."""
    return (
        *BASE_SKIP_PATHS,
        f"{api_prefix}/health",
        f"{api_prefix}/auth/login",
        f"{api_prefix}/auth/refresh",
        *extra,
    )


def should_skip(path: str, skip_paths: tuple[str, ...]) -> bool:
    """Segment-wise prefix match: /health skips /health and /health/db, not /healthz."""
    for prefix in skip_paths:
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


class AuditMiddleware(BaseHTTPMiddleware):
    """Records entity "Request", id "METHOD:path", action "Request" for every audited call."""

    def __init__(
        self,
        app: ASGIApp,
        recorder: AuditRecorder,
        validator: TokenValidator,
        skip_paths: tuple[str, ...],
    ) -> None:
        super().__init__(app)
        self.recorder = recorder
        self.validator = validator
        self.skip_paths = tuple(p.rstrip("/") or "/" for p in skip_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.recorder.enabled or should_skip(request.url.path, self.skip_paths):
            return await call_next(request)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            await run_in_threadpool(self._record, request, status_code)

    def _actor_id(self, request: Request) -> int | None:
        identity = getattr(request.state, "identity", None)
        if isinstance(identity, IdentityContext):
            return identity.subject_id
        # Route did not run the gate; the token may still identify the caller.
        auth_header = request.headers.get("authorization", "")
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        result = self.validator.authenticate_request(token.strip())
        return result.subject_id if isinstance(result, IdentityContext) else None

    def _record(self, request: Request, status_code: int) -> None:
        self.recorder.record(
            AuditEntity.REQUEST,
            f"{request.method}:{request.url.path}",
            AuditAction.REQUEST,
            actor_id=self._actor_id(request),
            after=json.dumps({"status_code": status_code}),
            request_meta=RequestMeta.from_request(request),
        )
