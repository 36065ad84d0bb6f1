"""
Database Session Management

Provides database sessions for the API, workers and scripts. Components never
reach for a global session; they receive one explicitly.
"""

from contextlib import contextmanager
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from shared.utils.config import get_settings


@lru_cache
def get_engine() -> Engine:
    """Create the engine on first use."""
    settings = get_settings()
    return create_engine(
        settings.postgres_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=settings.debug,
    )


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Get a database session.

    Usage:
        with get_db() as db:
            db.execute(...)
    """
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session (override in tests)."""
    with get_db() as db:
        yield db


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Explicit boundary around a multi-row write: commit everything or nothing.

    Usage:
        with transaction(db):
            db.add(score)
            db.add_all(breakdown)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
