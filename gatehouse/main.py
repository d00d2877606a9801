"""FastAPI application factory. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from gatehouse.api.v1 import health
from gatehouse.api.v1 import router as v1_router
from gatehouse.core.config import Settings, get_settings
from gatehouse.core.database import get_session_factory
from gatehouse.core.errors import register_exception_handlers
from gatehouse.core.security import PasswordHasher
from gatehouse.middleware.audit import AuditMiddleware, default_skip_paths
from gatehouse.services.audit import AuditRecorder
from gatehouse.services.tokens import TokenConfig, TokenIssuer, TokenValidator

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info(
        "Gatehouse API starting (env=%s, access_ttl=%sm, audit=%s)",
        settings.APP_ENV,
        settings.JWT_EXPIRE_MINUTES,
        "on" if settings.AUDIT_ENABLED else "off",
    )
    if settings.APP_ENV == "prod" and settings.JWT_SECRET.get_secret_value() == "change-me-in-production":
        logger.warning("JWT_SECRET is the default value; set a strong secret in production")
    yield
    logger.info(
        "Gatehouse API shutdown (audit failures since start: %s)",
        app.state.audit_recorder.failure_count,
    )


def create_app(
    settings: Settings | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> FastAPI:
    """
    Build the application. Token configuration and shared services are created
    once here and stored on app.state; nothing reads them from globals later.
    """
    settings = settings or get_settings()
    session_factory = session_factory or get_session_factory()

    app = FastAPI(
        title="Gatehouse API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    token_config = TokenConfig.from_settings(settings)
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.token_config = token_config
    app.state.token_issuer = TokenIssuer(token_config)
    app.state.token_validator = TokenValidator(token_config)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.audit_recorder = AuditRecorder(session_factory, enabled=settings.AUDIT_ENABLED)

    register_exception_handlers(app)

    app.add_middleware(
        AuditMiddleware,
        recorder=app.state.audit_recorder,
        validator=app.state.token_validator,
        skip_paths=default_skip_paths(settings.API_V1_PREFIX, settings.AUDIT_EXTRA_SKIP_PATHS),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)
    app.include_router(health.router, prefix="/health", tags=["health"])

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Gatehouse API"}

    return app
