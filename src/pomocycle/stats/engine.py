"""Focus statistics and calendar-day streaks over the session log."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable

from pomocycle.core.clock import local_today
from pomocycle.schemas import SessionRecord, Task

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Stats:
    """Aggregates shown to the user."""

    sessions_today: int = 0
    focus_minutes_today: float = 0.0
    total_sessions: int = 0
    total_focus_minutes: float = 0.0
    streak_days: int = 0
    longest_streak_days: int = 0
    tasks_completed: int = 0

    @property
    def total_focus_display(self) -> str:
        """Hours with one decimal once past an hour, otherwise whole minutes."""
        hours = self.total_focus_minutes / 60
        if hours >= 1:
            return f"{hours:.1f}h"
        return f"{round(self.total_focus_minutes)}m"


def current_streak(dates: Iterable[date], today: date) -> int:
    """Consecutive days ending today or yesterday.

    The newest date must be today or yesterday, otherwise the streak has
    lapsed. From there each accepted date must be exactly one calendar day
    before the previous one.
    """
    ordered = sorted(set(dates), reverse=True)
    if not ordered:
        return 0
    if ordered[0] not in (today, today - ONE_DAY):
        return 0

    streak = 1
    previous = ordered[0]
    for day in ordered[1:]:
        if day != previous - ONE_DAY:
            break
        streak += 1
        previous = day
    return streak


def longest_streak(dates: Iterable[date]) -> int:
    """Longest run of consecutive days anywhere in history."""
    ordered = sorted(set(dates), reverse=True)
    if not ordered:
        return 0

    longest = 1
    run = 1
    for i in range(1, len(ordered)):
        if ordered[i] == ordered[i - 1] - ONE_DAY:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def compute_stats(
    records: Iterable[SessionRecord],
    today: date,
    tasks: Iterable[Task] = (),
) -> Stats:
    """Pure aggregation of ``records`` as seen on ``today``."""
    work = [r for r in records if r.is_work]
    work_today = [r for r in work if r.date == today]
    work_dates = {r.date for r in work}

    return Stats(
        sessions_today=len(work_today),
        focus_minutes_today=sum(r.duration_minutes for r in work_today),
        total_sessions=len(work),
        total_focus_minutes=sum(r.duration_minutes for r in work),
        streak_days=current_streak(work_dates, today),
        longest_streak_days=longest_streak(work_dates),
        tasks_completed=sum(1 for t in tasks if t.completed),
    )


class StatsEngine:
    """Recomputes ``Stats`` from live stores on demand."""

    def __init__(
        self,
        sessions,
        tasks=None,
        today: Callable[[], date] = local_today,
    ):
        self.sessions = sessions
        self.tasks = tasks
        self.today = today

    def compute(self) -> Stats:
        return compute_stats(
            self.sessions.all(),
            self.today(),
            self.tasks.tasks if self.tasks is not None else (),
        )
