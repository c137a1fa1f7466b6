"""
Synchronization context for the admin pages.

Holds the in-memory copy of the four content collections for one admin
session, loads them on creation, re-fetches on demand and whenever the
store publishes a change on one of their tables.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, replace
from typing import Deque, Dict, List, Optional

from cms.domain.entities import ENTITY_KINDS, EntityKind
from cms.realtime.feed import ChangeEvent, ChangeFeed, Subscription
from cms.repositories.entity_repository import EntityRepository, RemoteUnavailable

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"

MAX_NOTICES = 20


@dataclass(frozen=True)
class Notice:
    """Transient user-visible notification (shown once, then dropped)."""

    title: str
    description: str
    variant: str = SUCCESS


class AdminSyncContext:
    """
    States: loading (creation or explicit refresh) -> ready.

    A failed fetch never leaves the context loading: the failure becomes an
    error notice and the collection keeps its previous contents.
    """

    def __init__(
        self,
        repositories: Dict[str, EntityRepository],
        feed: Optional[ChangeFeed] = None,
        *,
        autoload: bool = True,
    ) -> None:
        self.repositories = repositories
        self.collections: Dict[str, List] = {key: [] for key in repositories}
        self.is_loading = True
        self._notices: Deque[Notice] = deque(maxlen=MAX_NOTICES)
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []
        if feed is not None:
            for key, repo in repositories.items():
                self._subscriptions.append(feed.subscribe(repo.kind.table, self._on_change))
        if autoload:
            self.load_all()

    # -------------------------------------- reads --------------------------------------
    def items(self, key: str) -> List:
        with self._lock:
            return list(self.collections[key])

    def find(self, key: str, entity_id: str):
        for record in self.items(key):
            if record.id == entity_id:
                return record
        return None

    def counts(self) -> Dict[str, int]:
        with self._lock:
            return {key: len(items) for key, items in self.collections.items()}

    # -------------------------------------- loading --------------------------------------
    def fetch(self, key: str) -> bool:
        """Re-fetch one collection. Returns False (and queues an error notice) on failure."""
        repo = self.repositories[key]
        try:
            records = repo.list()
        except RemoteUnavailable:
            logger.exception("Erro ao carregar %s", repo.kind.table)
            self.notify(
                "Erro ao carregar dados",
                f"Não foi possível carregar {repo.kind.label.lower()}.",
                ERROR,
            )
            return False
        with self._lock:
            self.collections[key] = records
        return True

    def load_all(self) -> bool:
        with self._lock:
            self.is_loading = True
        try:
            results = [self.fetch(key) for key in self.repositories]
        finally:
            with self._lock:
                self.is_loading = False
        return all(results)

    def refresh(self) -> bool:
        return self.load_all()

    def _on_change(self, event: ChangeEvent) -> None:
        for key, repo in self.repositories.items():
            if repo.kind.table == event.table:
                logger.debug("Change on %s (%s); re-fetching", event.table, event.event)
                self.fetch(key)

    # -------------------------------------- mutations --------------------------------------
    def save(self, key: str, desired: List) -> bool:
        """Reconcile the store with `desired`, then re-fetch that collection."""
        repo = self.repositories[key]
        kind = repo.kind
        try:
            repo.reconcile(desired)
        except RemoteUnavailable:
            logger.exception("Erro ao atualizar %s", kind.table)
            self.notify("Erro", f"Não foi possível atualizar {kind.label.lower()}", ERROR)
            self.fetch(key)
            return False
        self.fetch(key)
        self.notify("Sucesso", f"{kind.label}: alterações salvas com sucesso")
        return True

    def add(self, key: str, **values) -> bool:
        kind = self._kind(key)
        record = kind.build(**values)
        return self.save(key, self.items(key) + [record])

    def edit(self, key: str, entity_id: str, **values) -> bool:
        current = self.items(key)
        changed = False
        desired = []
        for record in current:
            if record.id == entity_id:
                record = replace(record, **{k: v for k, v in values.items() if k in self._kind(key).fields})
                changed = True
            desired.append(record)
        if not changed:
            raise KeyError(entity_id)
        return self.save(key, desired)

    def remove(self, key: str, entity_id: str) -> bool:
        current = self.items(key)
        desired = [record for record in current if record.id != entity_id]
        if len(desired) == len(current):
            raise KeyError(entity_id)
        return self.save(key, desired)

    def update_marketing_campaigns(self, campaigns: List) -> bool:
        return self.save("campaigns", campaigns)

    def update_team_members(self, members: List) -> bool:
        return self.save("team", members)

    def update_testimonials(self, testimonials: List) -> bool:
        return self.save("testimonials", testimonials)

    def update_videos(self, videos: List) -> bool:
        return self.save("videos", videos)

    # -------------------------------------- notices --------------------------------------
    def notify(self, title: str, description: str, variant: str = SUCCESS) -> None:
        with self._lock:
            self._notices.append(Notice(title, description, variant))

    def drain_notices(self) -> List[Notice]:
        with self._lock:
            notices = list(self._notices)
            self._notices.clear()
        return notices

    # -------------------------------------- lifecycle --------------------------------------
    def close(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()

    def _kind(self, key: str) -> EntityKind:
        return self.repositories[key].kind if key in self.repositories else ENTITY_KINDS[key]
