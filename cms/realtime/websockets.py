"""
WebSocket bridge for realtime list refresh.

Browser tabs connect per table; store changes published on the change feed
are relayed to every socket watching that table.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import WebSocket

from cms.realtime.feed import ANY_TABLE, ChangeEvent, ChangeFeed, Subscription

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    WebSocket connections partitioned by table name.
    Broadcasts change notifications to every tab watching that table.
    """

    def __init__(self) -> None:
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._subscription: Optional[Subscription] = None

    async def connect(self, websocket: WebSocket, table: str) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self.active_connections.setdefault(table, []).append(websocket)
        logger.info("WS client connected for %s. Total: %d", table, len(self.active_connections[table]))

    def disconnect(self, websocket: WebSocket, table: str) -> None:
        if table in self.active_connections:
            if websocket in self.active_connections[table]:
                self.active_connections[table].remove(websocket)
            if not self.active_connections[table]:
                del self.active_connections[table]
        logger.info("WS client disconnected from %s", table)

    async def broadcast(self, message: Dict[str, Any], table: str) -> None:
        connections = list(self.active_connections.get(table, []))
        if not connections:
            return
        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.warning("Failed to send WS message: %s", e)

    def attach(self, feed: ChangeFeed) -> None:
        """Forward every store change from `feed` to the sockets watching its table."""
        if self._subscription is None:
            self._subscription = feed.subscribe(ANY_TABLE, self._on_change)

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, event: ChangeEvent) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        # publishers run on worker threads; the loop owns active_connections
        asyncio.run_coroutine_threadsafe(self.broadcast(event.to_dict(), event.table), loop)
