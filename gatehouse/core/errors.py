"""Error taxonomy for the identity core and its HTTP rendering."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GatehouseError(Exception):
    """Base class for errors mapped to HTTP responses with a stable error code."""

    status_code: int = 400
    error_code: str = "bad_request"

    def __init__(self, message: str, headers: dict[str, str] | None = None) -> None:
        self.message = message
        self.headers = headers
        super().__init__(message)


class AuthenticationFailure(GatehouseError):
    """Bad credentials or an absent, invalid or expired token. Message stays generic."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationFailure(GatehouseError):
    """Valid identity without any of the required roles."""

    status_code = 403
    error_code = "forbidden"

    def __init__(self, message: str = "Insufficient role") -> None:
        super().__init__(message)


class ConflictFailure(GatehouseError):
    """Uniqueness violation or a role that is still assigned."""

    status_code = 409
    error_code = "conflict"


class NotFoundFailure(GatehouseError):
    """Unknown identity, role or membership."""

    status_code = 404
    error_code = "not_found"


class AuditRecordingFailure(Exception):
    """Audit entry could not be written. Caught by the recorder; never reaches callers."""


def register_exception_handlers(app: FastAPI) -> None:
    """Render GatehouseError subclasses and unexpected errors as JSON envelopes."""

    @app.exception_handler(GatehouseError)
    async def gatehouse_error_handler(request: Request, exc: GatehouseError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.error_code},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Internals go to the log only, never to the response body.
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "An unexpected error occurred.", "code": "server_error"},
        )
