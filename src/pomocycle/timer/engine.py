"""Anchor-based countdown engine.

The engine never decrements a counter. Every tick recomputes

    remaining = max(0, total - (now - anchor))

from the anchor recorded at start/resume, so a late, throttled or withheld
tick produces one jump to the correct value instead of accumulated drift.
"""

from __future__ import annotations

import logging
from typing import Callable

from pomocycle.core.clock import Clock
from pomocycle.core.errors import InvalidOperation, ValidationError
from pomocycle.timer.scheduler import Cancellable, Scheduler

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL_MS = 250


class TimerEngine:
    """Single countdown over a fixed total duration.

    Usage:
        engine = TimerEngine(MonotonicClock(), AsyncioScheduler())
        engine.on_tick = lambda remaining_ms, total_ms: ...
        engine.on_complete = lambda: ...

        engine.start(25 * 60 * 1000)
        engine.pause()
        engine.resume(engine.total_ms, engine.remaining_ms)

    Completion fires exactly once per start/resume; later ticks are no-ops.
    """

    def __init__(
        self,
        clock: Clock,
        scheduler: Scheduler,
        tick_interval_ms: float = DEFAULT_TICK_INTERVAL_MS,
    ):
        self.clock = clock
        self.scheduler = scheduler
        self.tick_interval_ms = tick_interval_ms

        self.total_ms: float = 0.0
        self.remaining_ms: float = 0.0
        self.anchor: float | None = None
        self.running = False
        self._completed = False
        self._handle: Cancellable | None = None

        # Callbacks
        self.on_tick: Callable[[float, float], None] | None = None
        self.on_complete: Callable[[], None] | None = None

    @property
    def completed(self) -> bool:
        return self._completed

    def start(self, total_ms: float) -> None:
        """Start a fresh countdown of ``total_ms``."""
        self._cancel_pending()
        self.total_ms = float(total_ms)
        self.remaining_ms = self.total_ms
        self.anchor = self.clock.now()
        self.running = True
        self._completed = False
        self._schedule()

    def resume(self, total_ms: float, remaining_ms: float) -> None:
        """Continue a countdown, keeping the time already elapsed."""
        self._cancel_pending()
        self.total_ms = float(total_ms)
        self.remaining_ms = float(remaining_ms)
        self.anchor = self.clock.now() - (self.total_ms - self.remaining_ms)
        self.running = True
        self._completed = False
        self._schedule()

    def pause(self) -> float:
        """Freeze the countdown; returns the remaining time captured now."""
        if not self.running:
            raise InvalidOperation("Timer is not running")
        self._cancel_pending()
        self.remaining_ms = self._compute_remaining(self.clock.now())
        self.running = False
        return self.remaining_ms

    def load(self, total_ms: float) -> None:
        """Cancel any countdown and sit idle at the full ``total_ms``."""
        self._cancel_pending()
        self.total_ms = float(total_ms)
        self.remaining_ms = self.total_ms
        self.anchor = None
        self.running = False
        self._completed = False

    def cancel(self) -> None:
        """Stop scheduling ticks, keeping the last computed remaining time."""
        self._cancel_pending()
        self.running = False

    def tick(self, now: float | None = None) -> float:
        """Recompute remaining time from the anchor; returns it."""
        if not self.running or self._completed:
            return self.remaining_ms

        now = self.clock.now() if now is None else now
        remaining = self._compute_remaining(now)
        self.remaining_ms = remaining

        if self.on_tick:
            self.on_tick(remaining, self.total_ms)

        if not self.running:
            # A tick listener paused or stopped the countdown
            return remaining

        if remaining <= 0:
            self._cancel_pending()
            self.running = False
            self._completed = True
            logger.debug("Countdown reached zero")
            if self.on_complete:
                self.on_complete()
        else:
            self._schedule()

        return remaining

    def adjust_for_suspension(self, hidden_ms: float) -> None:
        """Shift the anchor so ``hidden_ms`` of withheld ticks is not counted."""
        if hidden_ms < 0:
            raise ValidationError("Suspended duration cannot be negative")
        if not self.running:
            return
        self.anchor += hidden_ms
        logger.debug(f"Anchor shifted by {hidden_ms:.0f}ms after suspension")

    def _compute_remaining(self, now: float) -> float:
        if self.anchor is None:
            return self.remaining_ms
        return min(self.total_ms, max(0.0, self.total_ms - (now - self.anchor)))

    def _schedule(self) -> None:
        self._cancel_pending()
        handle: Cancellable | None = None

        def fire() -> None:
            # A handle replaced or cancelled since scheduling is stale
            if self._handle is not handle:
                return
            self._handle = None
            self.tick()

        handle = self.scheduler.call_later(self.tick_interval_ms, fire)
        self._handle = handle

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
