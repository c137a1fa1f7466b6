"""
Repository tests against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cms.domain.entities import VIDEOS, Video
from cms.domain import entities
from cms.repositories import entity_repository
from cms.repositories.entity_repository import EntityRepository, RemoteUnavailable, build_repositories


@pytest.fixture()
def videos(store) -> EntityRepository:
    return build_repositories()["videos"]


def _video(title: str, url: str = "https://youtu.be/abc") -> Video:
    return VIDEOS.build(title=title, url=url)


def test_insert_assigns_permanent_id(videos):
    new_id = videos.insert(_video("Demo"))

    assert not VIDEOS.is_temporary(new_id)
    stored = videos.get(new_id)
    assert stored == Video(id=new_id, title="Demo", url="https://youtu.be/abc")


def test_list_orders_by_creation_time(videos):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    videos.insert(_video("Segundo"), created_at=base + timedelta(minutes=1))
    videos.insert(_video("Primeiro"), created_at=base)
    videos.insert(_video("Terceiro"), created_at=base + timedelta(minutes=2))

    assert [v.title for v in videos.list()] == ["Primeiro", "Segundo", "Terceiro"]


def test_reconcile_inserts_temporaries_and_deletes_missing(videos):
    keep_id = videos.insert(_video("Fica"))
    drop_id = videos.insert(_video("Sai"))
    current = {v.id: v for v in videos.list()}

    result = videos.reconcile([current[keep_id], _video("Novo")])

    assert (result.inserted, result.updated, result.deleted) == (1, 0, 1)
    listed = videos.list()
    assert [v.title for v in listed] == ["Fica", "Novo"]
    assert drop_id not in {v.id for v in listed}
    assert all(not VIDEOS.is_temporary(v.id) for v in listed)


def test_reconcile_with_current_list_issues_no_writes(videos, events):
    videos.insert(_video("A"))
    videos.insert(_video("B"))
    events.clear()

    result = videos.reconcile(videos.list())

    assert result.writes == 0
    assert events == []


def test_reconcile_updates_only_changed_rows(videos):
    a_id = videos.insert(_video("A"))
    videos.insert(_video("B"))
    desired = [Video(id=v.id, title=("A2" if v.id == a_id else v.title), url=v.url) for v in videos.list()]

    result = videos.reconcile(desired)

    assert result.updated == 1
    assert videos.get(a_id).title == "A2"


def test_reconcile_skips_rows_deleted_elsewhere(videos):
    gone_id = videos.insert(_video("Removido por outra aba"))
    snapshot = videos.list()
    videos.delete_ids([gone_id])

    result = videos.reconcile(snapshot)

    assert result.writes == 0
    assert videos.list() == []


def test_delete_ids_removes_by_id_set(videos):
    ids = [videos.insert(_video(f"V{i}")) for i in range(3)]

    assert videos.delete_ids(ids[:2]) == 2
    assert videos.delete_ids([]) == 0
    assert videos.existing_ids() == [ids[2]]


def test_store_failure_raises_remote_unavailable(videos, monkeypatch, store_offline):
    monkeypatch.setattr(entity_repository, "get_session", store_offline)

    with pytest.raises(RemoteUnavailable):
        videos.list()
    with pytest.raises(RemoteUnavailable):
        videos.reconcile([_video("X")])


def test_every_kind_round_trips_its_fields(store):
    repos = build_repositories()
    samples = {
        "campaigns": {"image_url": "https://cdn.example.com/a.png"},
        "team": {"image_url": "https://cdn.example.com/b.jpg"},
        "testimonials": {
            "quote": "Atendimento excelente e rápido.",
            "author": "Ana",
            "business": "Padaria Sol",
            "location": "Recife, PE",
            "logo_url": "https://cdn.example.com/logo.png",
        },
        "videos": {"title": "Demo", "url": "https://youtu.be/x"},
    }
    for key, values in samples.items():
        kind = entities.ENTITY_KINDS[key]
        repos[key].reconcile([kind.build(**values)])
        (record,) = repos[key].list()
        assert entities.to_dict(record) == {"id": record.id, **values}
