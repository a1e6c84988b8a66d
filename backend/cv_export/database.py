"""Database engine, session management, and initialization."""

from __future__ import annotations

from typing import Generator

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cv_export.config import AppConfig
from cv_export.models import Base

logger = structlog.get_logger(__name__)

# Module-level engine and session factory (initialized by init_db)
_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def init_db(config: AppConfig) -> Engine:
    """Create the database engine and session factory, and return the engine.

    Tables are only created when ``db_create_tables`` is set, which is meant
    for a local SQLite copy; in production the recruitment site owns the
    schema.
    """
    global _engine, _SessionLocal

    connect_args = {}
    if config.database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    _engine = create_engine(
        config.database_url,
        connect_args=connect_args,
        echo=False,
        pool_pre_ping=True,
    )

    if config.db_create_tables:
        Base.metadata.create_all(bind=_engine)

    _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False)
    logger.info("database_initialized", dialect=_engine.dialect.name)
    return _engine


def dispose_db() -> None:
    """Release pooled connections on shutdown."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory. Raises if init_db() has not been called."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized — call init_db() first")
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a read-only database session."""
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
