"""Database configuration and session management utilities."""
from __future__ import annotations

import contextlib
import os
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from curriculum_designer.config import DATABASE_URL

Base = declarative_base()


def create_db_engine(url: str | None = None) -> Engine:
    """Create an engine for ``url``, defaulting to the configured database."""

    return create_engine(
        url or DATABASE_URL,
        future=True,
        echo=os.getenv("SQLALCHEMY_ECHO") == "1",
    )


def init_db(engine: Engine) -> None:
    """Create database tables for all registered models."""
    from curriculum_designer.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextlib.contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "create_db_engine",
    "init_db",
    "session_scope",
]
