"""
Database configuration and session management.
Uses SQLAlchemy 2.x; the engine is created lazily so importing models
(or running tests against another URL) never opens a connection.
"""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from voiceexpense.config import settings
from voiceexpense.logging_config import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy Base for ORM models."""


_engine: Engine | None = None
_session_local: sessionmaker[Session] | None = None


def create_db_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite gets check_same_thread disabled so request threads can share
    the pool; server databases get a bounded pool checkout timeout.
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.database_pool_timeout_seconds,
            },
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=settings.database_pool_timeout_seconds,
    )


def get_engine() -> Engine:
    """Get or create the engine lazily."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(settings.database_url)
        logger.debug("database_engine_created", dialect=_engine.dialect.name)
    return _engine


def get_session_local() -> sessionmaker[Session]:
    """Get or create the session factory lazily."""
    global _session_local
    if _session_local is None:
        _session_local = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_local


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for FastAPI endpoints to get a database session.

    Yields:
        SQLAlchemy Session
    """
    db = get_session_local()()
    try:
        logger.debug("database_session_created")
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("database_session_error", error=str(e), exc_info=True)
        raise
    finally:
        db.close()
        logger.debug("database_session_closed")


def init_db(engine: Engine | None = None) -> None:
    """
    Initialize database tables.
    Only used for development/testing.
    """
    # Register models on Base.metadata
    import voiceexpense.models  # noqa: F401

    logger.info("initializing_database_tables")
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("database_tables_created")
