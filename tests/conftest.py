"""Shared fixtures: deterministic clock and scheduler, in-memory stores."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from pomocycle.app import PomodoroApp
from pomocycle.storage.kv import MemoryStore


class ManualClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, start: float = 0.0):
        self.t = start

    def now(self) -> float:
        return self.t

    def advance(self, ms: float) -> None:
        self.t += ms


class ManualHandle:
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Records scheduled callbacks; ``run_due`` fires the ones whose time came."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self.handles: list[ManualHandle] = []

    def call_later(self, delay_ms: float, callback) -> ManualHandle:
        handle = ManualHandle(self.clock.now() + delay_ms, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled]

    def run_due(self) -> int:
        fired = 0
        while True:
            due = [h for h in self.pending if h.due <= self.clock.now()]
            if not due:
                return fired
            for handle in due:
                handle.cancelled = True
                handle.callback()
                fired += 1

    def advance(self, ms: float, step: float | None = None) -> None:
        """Move the clock forward, firing ticks along the way."""
        step = step or ms
        remaining = ms
        while remaining > 0:
            delta = min(step, remaining)
            self.clock.advance(delta)
            remaining -= delta
            self.run_due()


class Calendar:
    """Controllable local date/time for records and stats."""

    def __init__(self, moment: datetime):
        self.moment = moment

    def now(self) -> datetime:
        return self.moment

    def today(self) -> date:
        return self.moment.date()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def calendar() -> Calendar:
    return Calendar(datetime(2024, 1, 3, 10, 0, 0))


@pytest.fixture
def make_app(store, clock, scheduler, calendar):
    def factory(kv=None) -> PomodoroApp:
        return PomodoroApp(
            kv if kv is not None else store,
            clock=clock,
            scheduler=scheduler,
            tick_interval_ms=1000,
            today=calendar.today,
            now=calendar.now,
        )

    return factory


@pytest.fixture
def app(make_app) -> PomodoroApp:
    return make_app()
