from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

import websockets

from digitbot.domain import FeedError
from digitbot.infra import RuntimeEventLogger

TickHandler = Callable[[str, float, float | None], None]


def _epoch(raw) -> float | None:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


class DerivTickFeed:
    """Streams ticks for a set of symbols from the Deriv websocket API.

    One ``run()`` call is one connection: it returns when the server closes the
    socket and raises on protocol errors, leaving reconnection to the caller.
    """

    def __init__(
        self,
        *,
        url: str,
        symbols: Iterable[str],
        on_tick: TickHandler,
        api_token: str = "",
        log: logging.Logger | None = None,
        events: RuntimeEventLogger | None = None,
        recv_timeout: float = 30.0,
    ):
        self.url = url
        self.symbols = tuple(symbols)
        self.on_tick = on_tick
        self.api_token = api_token
        self.log = log or logging.getLogger(__name__)
        self.events = events
        self.recv_timeout = max(1.0, float(recv_timeout))
        self.connected = False

    def _emit(self, event: str, **fields: Any) -> None:
        if self.events is not None:
            self.events.emit(event, **fields)

    def subscriptions(self) -> list[dict[str, Any]]:
        return [{"ticks": symbol, "subscribe": 1} for symbol in self.symbols]

    def opening_messages(self) -> list[dict[str, Any]]:
        if self.api_token:
            return [{"authorize": self.api_token}]
        return self.subscriptions()

    def handle_message(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Process one decoded server message and return the messages to send back."""
        if data.get("error"):
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            raise FeedError(f"feed error: {message}")

        msg_type = data.get("msg_type")
        if msg_type == "authorize" and data.get("authorize"):
            self.log.info("feed authorized, subscribing to %d symbols", len(self.symbols))
            return self.subscriptions()
        if msg_type == "tick":
            tick = data.get("tick") or {}
            symbol = tick.get("symbol")
            quote = tick.get("quote")
            if symbol is None or quote is None:
                return []
            self.on_tick(str(symbol), quote, _epoch(tick.get("epoch")))
        return []

    async def run(self) -> None:
        self.log.info("feed connecting url=%s symbols=%s", self.url, ",".join(self.symbols))
        async with websockets.connect(self.url, ping_interval=20, open_timeout=10) as ws:
            self.connected = True
            self._emit("feed.connected", symbols=list(self.symbols))
            try:
                for payload in self.opening_messages():
                    await ws.send(json.dumps(payload))
                while True:
                    try:
                        raw = await asyncio.wait_for(ws.recv(), timeout=self.recv_timeout)
                    except asyncio.TimeoutError:
                        raise FeedError("feed recv timeout")
                    if isinstance(raw, (bytes, bytearray)):
                        raw = raw.decode("utf-8", "ignore")
                    try:
                        data = json.loads(raw)
                    except ValueError:
                        self.log.debug("feed dropped non-json frame")
                        continue
                    for reply in self.handle_message(data):
                        await ws.send(json.dumps(reply))
            except websockets.ConnectionClosed as exc:
                self.log.warning("feed disconnected: %s", exc)
                self._emit("feed.disconnected", reason=str(exc))
            except FeedError as exc:
                self._emit("feed.error", error=str(exc))
                raise
            finally:
                self.connected = False
