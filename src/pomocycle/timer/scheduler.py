"""Tick schedulers: where the countdown's next callback comes from."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Cooperative scheduler: runs ``callback`` once after ``delay_ms``.

    The returned handle's ``cancel()`` must invalidate the callback
    synchronously, so a cancelled tick can never run.
    """

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Usage:
        async def main():
            scheduler = AsyncioScheduler()
            engine = TimerEngine(MonotonicClock(), scheduler)
            ...
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback)
