"""
AdminSyncContext: load, mutate, failure handling and cross-session refresh.
"""
from __future__ import annotations

import pytest

from cms.domain.entities import VIDEOS
from cms.realtime.feed import change_feed
from cms.repositories.entity_repository import RemoteUnavailable, build_repositories
from cms.services.sync_context import ERROR, SUCCESS, AdminSyncContext


@pytest.fixture()
def context(store):
    ctx = AdminSyncContext(build_repositories(), change_feed)
    yield ctx
    ctx.close()


def test_creation_loads_all_collections(store):
    repos = build_repositories()
    repos["videos"].insert(VIDEOS.build(title="Demo", url="https://youtu.be/a"))

    ctx = AdminSyncContext(repos)

    assert ctx.is_loading is False
    assert ctx.counts() == {"campaigns": 0, "team": 0, "testimonials": 0, "videos": 1}


def test_add_yields_one_permanent_entity(context):
    assert context.add("videos", title="Demo", url="https://youtu.be/a") is True

    (video,) = context.items("videos")
    assert video.title == "Demo"
    assert not VIDEOS.is_temporary(video.id)
    assert [n.variant for n in context.drain_notices()] == [SUCCESS]


def test_edit_and_remove(context):
    context.add("videos", title="Demo", url="https://youtu.be/a")
    (video,) = context.items("videos")

    assert context.edit("videos", video.id, title="Demo editado") is True
    assert context.find("videos", video.id).title == "Demo editado"

    assert context.remove("videos", video.id) is True
    assert context.items("videos") == []


def test_edit_unknown_id_raises(context):
    with pytest.raises(KeyError):
        context.edit("videos", "nao-existe", title="x")
    with pytest.raises(KeyError):
        context.remove("videos", "nao-existe")


def test_update_videos_replaces_collection(context):
    context.update_videos([VIDEOS.build(title="Um", url="https://a.com"), VIDEOS.build(title="Dois", url="https://b.com")])
    first = context.items("videos")[0]

    context.update_videos([first])

    assert [v.title for v in context.items("videos")] == ["Um"]


def test_failed_fetch_settles_ready_with_error_notice(store, monkeypatch):
    repos = build_repositories()

    def offline():
        raise RemoteUnavailable("down")

    monkeypatch.setattr(repos["team"], "list", offline)

    ctx = AdminSyncContext(repos)

    assert ctx.is_loading is False
    assert ctx.items("team") == []
    notices = ctx.drain_notices()
    assert [n.variant for n in notices] == [ERROR]
    assert notices[0].title == "Erro ao carregar dados"


def test_failed_save_keeps_previous_state(context, monkeypatch):
    context.add("videos", title="Antes", url="https://youtu.be/a")
    context.drain_notices()

    def offline(desired):
        raise RemoteUnavailable("down")

    monkeypatch.setattr(context.repositories["videos"], "reconcile", offline)

    assert context.add("videos", title="Depois", url="https://youtu.be/b") is False
    assert [v.title for v in context.items("videos")] == ["Antes"]
    assert [n.variant for n in context.drain_notices()] == [ERROR]


def test_two_contexts_see_each_others_inserts(store):
    tab_a = AdminSyncContext(build_repositories(), change_feed)
    tab_b = AdminSyncContext(build_repositories(), change_feed)
    try:
        tab_a.add("testimonials", quote="Serviço impecável!", author="Ana", business="Sol", location="Recife", logo_url="https://x.com/l.png")

        assert [t.author for t in tab_b.items("testimonials")] == ["Ana"]
        assert tab_b.items("videos") == []
    finally:
        tab_a.close()
        tab_b.close()


def test_closed_context_stops_listening(store):
    watcher = AdminSyncContext(build_repositories(), change_feed)
    writer = AdminSyncContext(build_repositories(), change_feed)
    watcher.close()

    writer.add("videos", title="Demo", url="https://youtu.be/a")

    assert watcher.items("videos") == []
    writer.close()


def test_change_refetches_only_the_changed_collection(store):
    watcher_repos = build_repositories()
    listed = []
    for key, repo in watcher_repos.items():
        original = repo.list

        def spy(key=key, original=original):
            listed.append(key)
            return original()

        repo.list = spy
    watcher = AdminSyncContext(watcher_repos, change_feed)
    writer = AdminSyncContext(build_repositories(), change_feed)
    try:
        assert sorted(listed) == ["campaigns", "team", "testimonials", "videos"]
        listed.clear()

        writer.add("team", image_url="https://cdn.example.com/equipe.png")

        assert listed and set(listed) == {"team"}
        assert watcher.counts()["team"] == 1
    finally:
        watcher.close()
        writer.close()
