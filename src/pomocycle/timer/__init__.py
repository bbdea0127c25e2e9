"""Countdown engine and work/break cycle controller."""

from pomocycle.timer.cycle import CycleController, CycleState, next_session
from pomocycle.timer.durations import DurationConfig, Preferences
from pomocycle.timer.engine import TimerEngine
from pomocycle.timer.scheduler import AsyncioScheduler, Scheduler

__all__ = [
    "CycleController",
    "CycleState",
    "next_session",
    "DurationConfig",
    "Preferences",
    "TimerEngine",
    "AsyncioScheduler",
    "Scheduler",
]
