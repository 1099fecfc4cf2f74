"""Websocket server that pushes each flip to every connected subscriber."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from ..constants.network import AUCTION_LINK_URL, DEFAULT_BROADCAST_HOST, DEFAULT_BROADCAST_PORT
from ..models import FlipEvent
from ..price_index import MarketPriceIndex

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to the Auction Bot WebSocket! Waiting for flips..."
BROADCAST_ONLY_NOTICE = "This server only broadcasts flips; messages are ignored."


def auction_link(opaque_id: str) -> str:
    return AUCTION_LINK_URL.format(auction_id=opaque_id)


def build_broadcast_message(event: FlipEvent, index: MarketPriceIndex) -> Dict[str, Any]:
    return {
        "command": auction_link(event.opaque_id),
        "price": event.price_asked,
        "lowest_bin": index.lowest(event.canonical_name),
        "second_lowest_bin": index.second_lowest(event.canonical_name),
    }


class FlipBroadcastServer:
    """Publish/subscribe channel for flips; subscribers only receive."""

    def __init__(
        self,
        index: MarketPriceIndex,
        *,
        host: str = DEFAULT_BROADCAST_HOST,
        port: int = DEFAULT_BROADCAST_PORT,
    ) -> None:
        self._index = index
        self._host = host
        self._port = port
        self._subscribers: Set[Any] = set()
        self._registry_lock = asyncio.Lock()
        self._server: Optional[Any] = None

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def is_running(self) -> bool:
        return self._server is not None

    async def subscriber_count(self) -> int:
        async with self._registry_lock:
            return len(self._subscribers)

    async def start(self) -> None:
        if self._server is not None:
            return
        self._server = await websockets.serve(self.handle_connection, self._host, self._port)
        logger.info("Broadcast server listening on %s", self.address)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        async with self._registry_lock:
            self._subscribers.clear()
        logger.info("Broadcast server stopped")

    async def handle_connection(self, websocket: Any) -> None:
        """Register *websocket* until it disconnects."""
        async with self._registry_lock:
            self._subscribers.add(websocket)
        logger.info("Broadcast subscriber connected: %s", getattr(websocket, "remote_address", None))
        try:
            await websocket.send(WELCOME_MESSAGE)
            async for message in websocket:
                logger.debug("Ignoring subscriber message: %s", message)
                await websocket.send(BROADCAST_ONLY_NOTICE)
        except ConnectionClosed:  # policy_guard: allow-silent-handler
            logger.debug("Broadcast subscriber connection closed")
        finally:
            async with self._registry_lock:
                self._subscribers.discard(websocket)
            logger.info("Broadcast subscriber disconnected: %s", getattr(websocket, "remote_address", None))

    async def publish(self, message: str) -> int:
        """Send *message* to every open subscriber; returns the delivery count."""
        async with self._registry_lock:
            subscribers = list(self._subscribers)
        if not subscribers:
            return 0

        delivered = 0
        closed = []
        for websocket in subscribers:
            try:
                await websocket.send(message)
            except ConnectionClosed:  # policy_guard: allow-silent-handler
                closed.append(websocket)
                continue
            delivered += 1

        if closed:
            async with self._registry_lock:
                self._subscribers.difference_update(closed)
            logger.debug("Dropped %d closed broadcast subscribers", len(closed))
        return delivered

    async def notify(self, event: FlipEvent) -> None:
        delivered = await self.publish(json.dumps(build_broadcast_message(event, self._index)))
        if delivered:
            logger.debug("Broadcast flip %s to %d subscribers", event.opaque_id, delivered)


__all__ = [
    "BROADCAST_ONLY_NOTICE",
    "FlipBroadcastServer",
    "WELCOME_MESSAGE",
    "auction_link",
    "build_broadcast_message",
]
