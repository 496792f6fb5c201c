from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable


class LoopSupervisor:
    """Restarts a managed async loop (the tick feed) after exit or failure with bounded backoff."""

    def __init__(self, *, base_delay: float = 5.0, max_delay: float = 60.0):
        self.base_delay = base_delay
        self.max_delay = max(max_delay, base_delay)
        self.restarts = 0

    async def run_forever(self, name: str, fn: Callable[[], Awaitable[None]], log) -> None:
        delay = self.base_delay
        while True:
            try:
                await fn()
                log.warning("loop %s exited; reconnecting in %.1fs", name, self.base_delay)
                delay = self.base_delay
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error("loop %s crashed: %s; retry in %.1fs", name, exc, delay)
            self.restarts += 1
            await asyncio.sleep(delay)
            delay = min(self.max_delay, max(self.base_delay, delay * 1.5))
