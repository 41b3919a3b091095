"""Database initialization and utilities."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


def create_db_engine(db_url: str = "sqlite:///shiftplanner.db", echo: bool = False):
    """Create SQLAlchemy engine."""
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection so every session sees the same in-memory database
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, echo=echo)


def init_database(db_url: str = "sqlite:///shiftplanner.db"):
    """Initialize database and create all tables. Returns the engine."""
    engine = create_db_engine(db_url)
    Base.metadata.create_all(engine)
    logger.info("Database initialized: %s", db_url)
    return engine


def get_session_factory(db_url: str = "sqlite:///shiftplanner.db", engine=None):
    """Get a session factory for the database."""
    if engine is None:
        engine = create_db_engine(db_url)
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory) -> Iterator[Session]:
    """Provide a transactional scope: commit on success, roll back on any error."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
