"""Database configuration and session management.

This module initializes the SQLAlchemy engine, session factory,
and declarative base, and provides a database session dependency
for FastAPI routes plus the transaction scope used by every write.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from .core import get_settings
from .exceptions import TransientStoreError

logger = logging.getLogger(__name__)

settings = get_settings()


def engine_options(url: str, timeout: float) -> dict:
    """Return ``create_engine`` keyword arguments for the given URL.

    SQLite takes its busy timeout through the driver; other backends use
    the pool checkout timeout.
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    return {"pool_timeout": timeout, "pool_pre_ping": True}


engine = create_engine(
    settings.DATABASE_URL,
    future=True,
    **engine_options(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS),
)
"""SQLAlchemy engine bound to the configured database URL."""


SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)
"""Factory for database sessions."""


Base = declarative_base()
"""Declarative base class for SQLAlchemy models."""


def get_db():
    """
    Provide a SQLAlchemy database session.

    This function is used as a FastAPI dependency.
    It yields a database session and ensures it is
    properly closed after the request is completed.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a block of work as one all-or-nothing unit.

    Commits when the block exits normally and rolls back on any exception.
    Store timeouts and connection losses are re-raised as
    :class:`TransientStoreError`; everything else propagates unchanged.

    Args:
        db (Session): Session to scope.

    Yields:
        Session: The same session.
    """
    try:
        yield db
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.warning("Store unavailable, transaction rolled back: %s", exc)
        raise TransientStoreError("Storage is temporarily unavailable") from exc
    except Exception:
        db.rollback()
        raise
