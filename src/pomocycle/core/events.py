"""Outbound event emission for presentation and telemetry collaborators."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

# Event names
TICK = "tick"
STATE_CHANGED = "state_changed"
SESSION_COMPLETED = "session_completed"
STATS_CHANGED = "stats_changed"
BREAK_AUTO_START_ELIGIBLE = "break_auto_start_eligible"
PERSISTENCE_WARNING = "persistence_warning"

EVENTS = (
    TICK,
    STATE_CHANGED,
    SESSION_COMPLETED,
    STATS_CHANGED,
    BREAK_AUTO_START_ELIGIBLE,
    PERSISTENCE_WARNING,
)

Handler = Callable[..., Any]


class EventEmitter:
    """Synchronous push-model event dispatcher.

    Usage:
        events = EventEmitter()
        events.subscribe(TICK, lambda remaining_ms, total_ms: ...)
        events.emit(TICK, 1000.0, 1500000.0)

    Handlers run in subscription order on the caller's thread. A failing
    handler is logged and never interrupts the core or other handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Error in {event} handler: {e}")
