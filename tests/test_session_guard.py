from __future__ import annotations

from datetime import datetime, timedelta, timezone

from cms.core import config as core_config
from cms.db.models import AdminSession
from cms.db.session import get_session
from cms.realtime.feed import change_feed
from cms.repositories.entity_repository import build_repositories
from cms.services.panel_state import PanelStateRegistry
from cms.services.session_guard import (
    active_session_tokens,
    delete_admin_session,
    delete_sessions_for,
    issue_admin_session,
    load_admin_session,
)
from cms.services.unsaved_changes import UnsavedChanges


def test_issue_and_load_session(store):
    token, csrf = issue_admin_session("admin@example.com")

    sess = load_admin_session(token)
    assert sess.email == "admin@example.com"
    assert sess.csrf_token == csrf
    assert sess.expires_at is None
    assert load_admin_session("desconhecido") is None
    assert load_admin_session(None) is None

    delete_admin_session(token)
    assert load_admin_session(token) is None


def test_expired_session_is_removed(store, monkeypatch):
    monkeypatch.setenv("ADMIN_SESSION_TTL_SECONDS", "60")
    core_config.get_settings.cache_clear()
    token, _ = issue_admin_session("admin@example.com")
    with get_session() as session:
        row = session.get(AdminSession, token)
        row.expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        session.commit()

    assert load_admin_session(token) is None
    with get_session() as session:
        assert session.get(AdminSession, token) is None


def test_delete_sessions_for_returns_revoked_tokens(store):
    first, _ = issue_admin_session("a@example.com")
    second, _ = issue_admin_session("a@example.com")
    other, _ = issue_admin_session("b@example.com")

    assert sorted(delete_sessions_for("a@example.com")) == sorted([first, second])
    assert load_admin_session(other) is not None


def test_unsaved_changes_flag():
    flag = UnsavedChanges()
    assert flag.should_confirm(False) is False
    flag.set(True)
    assert flag.should_confirm(False) is True
    assert flag.should_confirm(True) is False
    flag.reset()
    assert flag.pending is False


def test_registry_creates_once_and_disposes(store):
    registry = PanelStateRegistry(build_repositories, change_feed)

    state = registry.get("tok")
    assert registry.get("tok") is state
    assert registry.peek("outro") is None
    assert len(registry) == 1
    assert change_feed.get_subscriptions()["videos"] == 1

    registry.discard("tok")
    registry.discard(None)
    assert len(registry) == 0
    assert "videos" not in change_feed.get_subscriptions()


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_registry_evicts_idle_states(store):
    clock = _Clock()
    registry = PanelStateRegistry(build_repositories, change_feed, idle_seconds=60, clock=clock)
    for token in ("a", "b", "c"):
        registry.get(token)

    clock.now += 30
    registry.get("a")
    clock.now += 45

    assert registry.sweep() == 2
    assert registry.peek("a") is not None
    assert len(registry) == 1
    assert change_feed.get_subscriptions()["videos"] == 1


def test_registry_sweep_drops_tokens_without_session(store):
    registry = PanelStateRegistry(build_repositories, change_feed)
    live, _ = issue_admin_session("admin@example.com")
    registry.get(live)
    registry.get("sessao-apagada")

    assert registry.sweep(active_session_tokens()) == 1
    assert registry.peek(live) is not None
    assert registry.peek("sessao-apagada") is None


def test_active_session_tokens_skips_expired(store, monkeypatch):
    monkeypatch.setenv("ADMIN_SESSION_TTL_SECONDS", "60")
    core_config.get_settings.cache_clear()
    live, _ = issue_admin_session("admin@example.com")
    expired, _ = issue_admin_session("admin@example.com")
    with get_session() as session:
        session.get(AdminSession, expired).expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
        session.commit()

    assert active_session_tokens() == {live}
