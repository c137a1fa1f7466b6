"""
Shared fixtures: a temporary SQLite store and key-value file per test.
"""
from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

# Garante que o pacote cms seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cms.core import config as core_config
from cms.core.rate_limiter import reset_limits
from cms.db import models
from cms.db import session as db_session
from cms.realtime.feed import change_feed


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def store(tmp_path, monkeypatch):
    """Aponta DATABASE_URL/STORAGE_PATH para arquivos temporários e cria o schema."""
    db_file = tmp_path / "cms.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("STORAGE_PATH", str(tmp_path / "storage.json"))
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    _clear_caches()
    change_feed.clear()
    reset_limits()

    engine = db_session.get_engine()
    models.Base.metadata.create_all(bind=engine)

    yield db_file

    change_feed.clear()
    engine.dispose()
    _clear_caches()


@pytest.fixture()
def events(store):
    """Collects every change published on the feed."""
    seen = []
    sub = change_feed.subscribe("*", seen.append)
    yield seen
    sub.unsubscribe()


@contextmanager
def _store_offline():
    raise OperationalError("SELECT 1", {}, Exception("store offline"))
    yield  # pragma: no cover


@pytest.fixture()
def store_offline():
    """Context manager usable in place of get_session() to simulate an unreachable store."""
    return _store_offline
