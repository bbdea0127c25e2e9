"""Clock sources for the countdown and calendar helpers."""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Monotonic millisecond time source, unaffected by wall-clock changes."""

    def now(self) -> float: ...


class MonotonicClock:
    """Clock backed by ``time.monotonic``."""

    def now(self) -> float:
        return time.monotonic() * 1000.0


def local_today() -> date:
    """Return today's local calendar date."""
    return datetime.now().date()


def yesterday_of(day: date) -> date:
    return day - timedelta(days=1)


def format_countdown(ms: float) -> str:
    """Format milliseconds as MM:SS, rounding partial seconds up."""
    total_seconds = int(-(-max(0.0, ms) // 1000))
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}"


def format_date_label(day: date, today: date | None = None) -> str:
    """Human label for a history group: Today, Yesterday or e.g. 'Mon, Jan 01'."""
    today = today or local_today()
    if day == today:
        return "Today"
    if day == yesterday_of(today):
        return "Yesterday"
    return day.strftime("%a, %b %d")
