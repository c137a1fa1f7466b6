"""
Change Feed

Per-table publish/subscribe channel for store change notifications.
The database layer publishes after each committed write; sync contexts and
the WebSocket bridge subscribe.

Usage:
    sub = change_feed.subscribe("videos", lambda event: ...)
    ...
    sub.unsubscribe()
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

ANY_TABLE = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str

    def to_dict(self) -> dict:
        return {"table": self.table, "event": self.event}


Handler = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe; call unsubscribe() to leave the channel."""

    def __init__(self, feed: "ChangeFeed", table: str, handler: Handler) -> None:
        self._feed = feed
        self.table = table
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._feed._remove(self)
            self.active = False


class ChangeFeed:
    """
    Delivery is synchronous on the publishing thread and at-least-once per
    committed statement. A failing handler is logged and does not stop the
    others.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, table: str, handler: Handler) -> Subscription:
        sub = Subscription(self, table, handler)
        with self._lock:
            self._subscriptions.setdefault(table, []).append(sub)
        logger.debug("Subscribed %s to %s", getattr(handler, "__name__", handler), table)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions.get(sub.table, [])
            self._subscriptions[sub.table] = [s for s in subs if s is not sub]
            if not self._subscriptions[sub.table]:
                del self._subscriptions[sub.table]

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = list(self._subscriptions.get(event.table, [])) + list(
                self._subscriptions.get(ANY_TABLE, [])
            )
        if not targets:
            logger.debug("No subscribers for %s on %s", event.event, event.table)
            return
        for sub in targets:
            try:
                sub.handler(event)
            except Exception:
                logger.exception("Change handler failed for %s on %s", event.event, event.table)

    def clear(self) -> None:
        """Drop all subscriptions (useful for testing)."""
        with self._lock:
            for subs in self._subscriptions.values():
                for sub in subs:
                    sub.active = False
            self._subscriptions.clear()

    def get_subscriptions(self) -> Dict[str, int]:
        with self._lock:
            return {name: len(subs) for name, subs in self._subscriptions.items()}


# Global singleton
change_feed = ChangeFeed()
