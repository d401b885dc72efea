"""SQLAlchemy engine & session factory."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as SATimeoutError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from ordering_quiz.config import settings
from ordering_quiz.core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

# Lazy initialization - only create engine when first needed
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None  # type: ignore[type-arg]


def get_engine() -> Engine:
    """Get or create SQLAlchemy engine."""
    global _engine
    if _engine is None:
        kwargs: dict = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        # SQLite's single-connection pools take no timeout
        if not settings.DATABASE_URL.startswith("sqlite"):
            kwargs["pool_timeout"] = settings.DATABASE_POOL_TIMEOUT
        _engine = create_engine(settings.DATABASE_URL, **kwargs)
    return _engine


def get_session_factory() -> sessionmaker:  # type: ignore[type-arg]
    """Get or create session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return _SessionLocal


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


def get_db() -> Iterator[Session]:
    """FastAPI dependency: yields a DB session and closes it after the request."""
    factory = get_session_factory()
    db = factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise driver/pool failures as the retryable StorageUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError, SATimeoutError) as e:
        logger.error("Storage failure during %s: %s", operation, e)
        raise StorageUnavailable(
            "Storage temporarily unavailable, please retry",
            details={"operation": operation},
        ) from e
