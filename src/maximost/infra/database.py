"""Database infrastructure for the habit store."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Tuple

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig


def _enable_sqlite_pragmas(engine, pragmas: dict[str, str]) -> None:
    """Apply PRAGMAs (foreign keys in particular) on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _connection_record):  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        for key, value in pragmas.items():
            cursor.execute(f"PRAGMA {key}={value}")
        cursor.close()


def create_db_engine(config: BaseConfig):
    """Create SQLModel engine from configuration."""
    engine_options = config.sqlalchemy_engine_options()
    engine = create_engine(config.DATABASE_URL, **engine_options)
    if config.DATABASE_URL.startswith("sqlite"):
        _enable_sqlite_pragmas(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine):
    """Create a session factory; each call opens a new transactional scope."""

    def factory():
        return session_scope(engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by the application context so the CLI and tests share engine options
    and session configuration. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
