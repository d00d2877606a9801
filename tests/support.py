"""Shared builders for tests: settings, throwaway SQLite databases and seeded identities."""

import os
import tempfile

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from gatehouse.core.config import Settings
from gatehouse.core.database import build_engine, build_session_factory
from gatehouse.core.security import PasswordHasher
from gatehouse.models import Base, User
from gatehouse.services.directory import DirectoryService
from gatehouse.services.seed import ensure_default_roles
from gatehouse.services.tokens import TokenConfig

TEST_SECRET = "gatehouse-test-secret-0123456789abcdef"


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: SQLite, a fixed secret and the cheapest bcrypt cost."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def make_token_config(**overrides: object) -> TokenConfig:
    return TokenConfig.from_settings(make_settings(**overrides))


def make_session_factory(url: str = "sqlite://") -> tuple[Engine, sessionmaker[Session]]:
    """Engine and session factory with every table created."""
    engine = build_engine(url)
    Base.metadata.create_all(engine)
    return engine, build_session_factory(engine)


class FileDatabase:
    """
    SQLite file in a temporary directory. Each session gets its own connection,
    which is what the HTTP tests need (request session and audit session side by side).
    """

    def __init__(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.url = f"sqlite:///{os.path.join(self._tmp.name, 'gatehouse.db')}"
        self.engine, self.session_factory = make_session_factory(self.url)

    def close(self) -> None:
        self.engine.dispose()
        self._tmp.cleanup()


def add_user(
    db: Session,
    email: str,
    password: str,
    roles: tuple[str, ...] = (),
    full_name: str = "Test User",
    is_active: bool = True,
    hasher: PasswordHasher | None = None,
) -> User:
    """Create an identity holding the given default roles (seeding them if needed)."""
    ensure_default_roles(db)
    directory = DirectoryService(db, hasher or PasswordHasher(rounds=4))
    return directory.create_user(
        full_name, email, password, is_active=is_active, role_names=list(roles)
    )
