"""Per-session panel state: sync context plus unsaved-changes flag."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Optional

from cms.realtime.feed import ChangeFeed
from cms.repositories.entity_repository import EntityRepository
from cms.services.sync_context import AdminSyncContext
from cms.services.unsaved_changes import UnsavedChanges

logger = logging.getLogger(__name__)


@dataclass
class PanelState:
    sync: AdminSyncContext
    unsaved: UnsavedChanges = field(default_factory=UnsavedChanges)
    last_seen: float = 0.0

    def close(self) -> None:
        self.sync.close()


class PanelStateRegistry:
    """
    Creates a PanelState on an admin session's first request and disposes it
    on logout, when its session is gone, or after `idle_seconds` without a
    request (0 keeps idle states). An evicted state is rebuilt on the next
    request of a still valid session.
    """

    def __init__(
        self,
        repositories_factory: Callable[[], Dict[str, EntityRepository]],
        feed: Optional[ChangeFeed] = None,
        *,
        idle_seconds: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repositories_factory = repositories_factory
        self._feed = feed
        self._idle_seconds = idle_seconds
        self._clock = clock
        self._states: Dict[str, PanelState] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> PanelState:
        now = self._clock()
        with self._lock:
            state = self._states.get(token)
            if state is not None:
                state.last_seen = now
        if state is not None:
            return state
        self.sweep()
        # load outside the registry lock; a concurrent first request may build a twin
        state = PanelState(sync=AdminSyncContext(self._repositories_factory(), self._feed), last_seen=now)
        with self._lock:
            existing = self._states.get(token)
            if existing is None:
                self._states[token] = state
                logger.debug("Panel state created (%d live)", len(self._states))
                return state
        state.close()
        return existing

    def peek(self, token: str) -> Optional[PanelState]:
        with self._lock:
            return self._states.get(token)

    def discard(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            state = self._states.pop(token, None)
        if state is not None:
            state.close()

    def sweep(self, live_tokens: Optional[Collection[str]] = None) -> int:
        """Dispose idle states and, when `live_tokens` is given, states whose token is not in it."""
        cutoff = self._clock() - self._idle_seconds if self._idle_seconds > 0 else None
        with self._lock:
            stale = [
                token
                for token, state in self._states.items()
                if (live_tokens is not None and token not in live_tokens)
                or (cutoff is not None and state.last_seen < cutoff)
            ]
            evicted = [self._states.pop(token) for token in stale]
        for state in evicted:
            state.close()
        if evicted:
            logger.info("Evicted %d panel states (%d live)", len(evicted), len(self))
        return len(evicted)

    def close_all(self) -> None:
        with self._lock:
            states = list(self._states.values())
            self._states.clear()
        for state in states:
            state.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)
