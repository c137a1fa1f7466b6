from __future__ import annotations

import asyncio

from cms.db.models import AdminSession
from cms.db.session import get_session
from cms.domain.entities import VIDEOS
from cms.realtime.feed import ANY_TABLE, DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed
from cms.realtime.websockets import ConnectionManager
from cms.repositories.entity_repository import build_repositories


def test_publish_reaches_table_and_wildcard_subscribers():
    feed = ChangeFeed()
    videos, everything = [], []
    feed.subscribe("videos", videos.append)
    feed.subscribe(ANY_TABLE, everything.append)

    feed.publish(ChangeEvent("videos", INSERT))
    feed.publish(ChangeEvent("testimonials", DELETE))

    assert videos == [ChangeEvent("videos", INSERT)]
    assert [e.table for e in everything] == ["videos", "testimonials"]


def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    seen = []
    sub = feed.subscribe("team_members", seen.append)
    sub.unsubscribe()
    sub.unsubscribe()

    feed.publish(ChangeEvent("team_members", UPDATE))

    assert seen == []
    assert feed.get_subscriptions() == {}


def test_failing_handler_does_not_block_others():
    feed = ChangeFeed()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    feed.subscribe("videos", broken)
    feed.subscribe("videos", seen.append)

    feed.publish(ChangeEvent("videos", UPDATE))

    assert seen == [ChangeEvent("videos", UPDATE)]


def test_committed_writes_publish_one_event_per_table(store, events):
    repo = build_repositories()["videos"]

    new_id = repo.insert(VIDEOS.build(title="Demo", url="https://youtu.be/a"))
    (record,) = repo.list()
    record.title = "Demo 2"
    repo.update(record)
    repo.delete_ids([new_id])

    assert [e.to_dict() for e in events] == [
        {"table": "videos", "event": "INSERT"},
        {"table": "videos", "event": "UPDATE"},
        {"table": "videos", "event": "DELETE"},
    ]


def test_rolled_back_and_unwatched_writes_publish_nothing(store, events):
    repo = build_repositories()["campaigns"]
    with get_session() as session:
        session.add(repo.model(image_url="https://cdn.example.com/a.png"))
        session.flush()
        session.rollback()
    with get_session() as session:
        session.add(AdminSession(token="t", email="a@b.c", csrf_token="x"))
        session.commit()

    assert events == []


def test_websocket_bridge_skips_tables_without_sockets():
    manager = ConnectionManager()

    asyncio.run(manager.broadcast({"table": "videos", "event": INSERT}, "videos"))
    manager._on_change(ChangeEvent("videos", INSERT))

    assert manager.active_connections == {}
