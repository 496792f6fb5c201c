from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiohttp import web


class EventBroadcaster:
    """Fan-out of pipeline events to connected websocket clients.

    ``publish`` never awaits: each send is a task, and a client whose send
    fails is dropped.
    """

    def __init__(self, log: logging.Logger | None = None):
        self.clients: set[web.WebSocketResponse] = set()
        self.log = log or logging.getLogger(__name__)
        self._tasks: set[asyncio.Task] = set()
        self.published = 0

    def add(self, ws: web.WebSocketResponse) -> None:
        self.clients.add(ws)

    def discard(self, ws: web.WebSocketResponse) -> None:
        self.clients.discard(ws)

    def publish(self, event: dict[str, Any]) -> None:
        self.published += 1
        if not self.clients:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        for ws in list(self.clients):
            if ws.closed:
                self.clients.discard(ws)
                continue
            task = loop.create_task(self._send(ws, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _send(self, ws: web.WebSocketResponse, event: dict[str, Any]) -> None:
        try:
            await ws.send_json(event)
        except Exception as exc:
            self.log.debug("dropping websocket client: %s", exc)
            self.clients.discard(ws)

    async def close(self) -> None:
        for ws in list(self.clients):
            await ws.close()
        self.clients.clear()
