"""Engine/session helpers for the content store."""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from cms.core.config import get_settings

Base = declarative_base()


@lru_cache
def get_engine():
    settings = get_settings()
    url = (settings.database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL must be configured.")
    connect_args = {}
    if url.startswith("sqlite"):
        # requests are served from a worker thread pool
        connect_args["check_same_thread"] = False
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)


@lru_cache
def _get_sessionmaker():
    from cms.db.notifications import install_change_notifications

    factory = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True)
    install_change_notifications(factory)
    return factory


@contextmanager
def get_session() -> Session:
    session: Session = _get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
