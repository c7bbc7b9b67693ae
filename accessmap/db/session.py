from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from accessmap.core.config import settings


def _make_engine():
    connect_args = {}
    if settings.database_url.startswith("sqlite"):
        # Writers on the same file wait on each other instead of failing fast.
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(settings.database_url, echo=False, future=True, connect_args=connect_args)


engine = _make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
