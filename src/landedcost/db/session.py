"""Database session factory and connection management.

``LCE_DATABASE_URL`` selects the database; a local SQLite file is used when it
is unset.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

DATABASE_URL = os.getenv("LCE_DATABASE_URL", "sqlite:///landedcost.db")


def build_engine(url: str = DATABASE_URL) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,
        echo=False,
    )


engine = build_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_standalone_session() -> Generator[Session, None, None]:
    """Context manager for CLI and script sessions; commits on success."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Engine | None = None) -> None:
    """Create the reference tables.

    In production, use Alembic migrations:
        alembic upgrade head
    """
    from landedcost.db.models import Base

    Base.metadata.create_all(bind=bind or engine)


def drop_all(bind: Engine | None = None) -> None:
    """Drop all tables (for testing only)."""
    from landedcost.db.models import Base

    Base.metadata.drop_all(bind=bind or engine)
