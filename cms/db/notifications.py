"""
Store-side change notifications.

Session events record which content tables were written in the current
transaction; after a successful commit one ChangeEvent per (table, event) is
published on the change feed. Rolled back work publishes nothing.
"""
from __future__ import annotations

import logging

from sqlalchemy import event

from cms.realtime.feed import DELETE, INSERT, UPDATE, ChangeEvent, change_feed

logger = logging.getLogger(__name__)

_PENDING_KEY = "cms_pending_changes"

WATCHED_TABLES = {"marketing_campaigns", "team_members", "testimonials", "videos"}


def _pending(session) -> list:
    return session.info.setdefault(_PENDING_KEY, [])


def _record(session, table_name: str | None, kind: str) -> None:
    if table_name not in WATCHED_TABLES:
        return
    pending = _pending(session)
    change = (table_name, kind)
    if change not in pending:
        pending.append(change)


def _on_orm_execute(orm_execute_state) -> None:
    statement = orm_execute_state.statement
    if not getattr(statement, "is_dml", False):
        return
    table = getattr(statement, "table", None)
    name = getattr(table, "name", None)
    if statement.is_insert:
        _record(orm_execute_state.session, name, INSERT)
    elif statement.is_update:
        _record(orm_execute_state.session, name, UPDATE)
    elif statement.is_delete:
        _record(orm_execute_state.session, name, DELETE)


def _on_after_flush(session, flush_context) -> None:
    for obj in session.new:
        _record(session, getattr(obj, "__tablename__", None), INSERT)
    for obj in session.dirty:
        _record(session, getattr(obj, "__tablename__", None), UPDATE)
    for obj in session.deleted:
        _record(session, getattr(obj, "__tablename__", None), DELETE)


def _on_after_commit(session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    for table_name, kind in pending:
        logger.debug("Store change committed: %s %s", kind, table_name)
        change_feed.publish(ChangeEvent(table=table_name, event=kind))


def _on_after_rollback(session) -> None:
    session.info.pop(_PENDING_KEY, None)


def install_change_notifications(factory) -> None:
    """Attach the change listeners to a sessionmaker."""
    event.listen(factory, "do_orm_execute", _on_orm_execute)
    event.listen(factory, "after_flush", _on_after_flush)
    event.listen(factory, "after_commit", _on_after_commit)
    event.listen(factory, "after_rollback", _on_after_rollback)
