from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Kitchen screens currently connected, grouped by shop."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._socket_to_shop: dict[WebSocket, str] = {}
        self._lock = asyncio.Lock()

    async def register(self, websocket: WebSocket, shop: str, status: str) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[shop].add(websocket)
            self._socket_to_shop[websocket] = shop
        logger.info("ws_kitchen_connected", extra={"shop": shop, "status": status})

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            shop = self._socket_to_shop.pop(websocket, None)
            if shop is None:
                return
            sockets = self._connections.get(shop)
            if sockets:
                sockets.discard(websocket)
                if not sockets:
                    self._connections.pop(shop, None)
        logger.info("ws_kitchen_disconnected", extra={"shop": shop})

    async def send(self, websocket: WebSocket, message_json_str: str) -> bool:
        try:
            await websocket.send_text(message_json_str)
        except Exception:
            await self.unregister(websocket)
            return False
        return True

    def connection_count(self, shop: str) -> int:
        return len(self._connections.get(shop, ()))
