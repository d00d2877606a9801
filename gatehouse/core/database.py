"""Database engine and session management (PostgreSQL in production, SQLite for dev/tests)."""

from collections.abc import Generator
from functools import lru_cache

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gatehouse.core.config import get_settings


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record) -> None:
    """Turn on FK enforcement; SQLite PRAGMAs are per-connection and off by default."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections get foreign key enforcement (cascade/restrict/set-null rules
    depend on it). In-memory SQLite uses a single shared connection so every session
    sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory used for request sessions and for audit writes."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@lru_cache
def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, created on first use."""
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    """Session factory bound to the configured engine."""
    return build_session_factory(get_engine())


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session from the app's factory and closes it when done."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
