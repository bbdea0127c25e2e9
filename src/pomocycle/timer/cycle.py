"""Work/break cycle state machine driving the countdown engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from pomocycle.core import events as ev
from pomocycle.core.errors import InvalidOperation, ValidationError
from pomocycle.core.events import EventEmitter
from pomocycle.schemas import SessionRecord, SessionType, new_id
from pomocycle.stats.engine import StatsEngine
from pomocycle.storage.sessions import SessionStore
from pomocycle.tasks.ledger import TaskLedger
from pomocycle.timer.durations import DurationConfig
from pomocycle.timer.engine import TimerEngine

logger = logging.getLogger(__name__)

SESSIONS_PER_CYCLE = 4
MS_PER_MINUTE = 60 * 1000


@dataclass(frozen=True)
class CycleState:
    """Snapshot of the cycle. Never persisted; a new process starts at Work(1)."""

    session_type: SessionType = SessionType.WORK
    session_count: int = 1
    total_ms: float = 0.0
    remaining_ms: float = 0.0
    running: bool = False
    paused: bool = False
    anchor: float | None = None
    auto_start_eligible: bool = False

    @property
    def progress(self) -> float:
        """Fraction of the current session already elapsed (0-1)."""
        if self.total_ms <= 0:
            return 0.0
        return min(1.0, max(0.0, 1 - self.remaining_ms / self.total_ms))


def next_session(session_type: SessionType, session_count: int) -> tuple[SessionType, int]:
    """Transition table of the cycle."""
    if session_type is SessionType.WORK:
        if session_count >= SESSIONS_PER_CYCLE:
            return SessionType.LONG_BREAK, session_count
        return SessionType.SHORT_BREAK, session_count
    if session_type is SessionType.LONG_BREAK:
        return SessionType.WORK, 1
    return SessionType.WORK, session_count + 1


class CycleController:
    """Sequences Work -> Short Break -> ... -> Long Break and owns the engine.

    Usage:
        controller = CycleController(engine, sessions, tasks, events=events)
        controller.start()   # start, or pause when already running
        controller.skip()    # next state, nothing recorded
        controller.stop()    # back to Work(1)

    Natural completion records the session, credits the active task,
    moves to the next state and leaves the new timer idle. Entering a
    break marks it auto-start eligible; starting it is the caller's call.
    """

    def __init__(
        self,
        engine: TimerEngine,
        sessions: SessionStore,
        tasks: TaskLedger,
        stats: StatsEngine | None = None,
        events: EventEmitter | None = None,
        durations: DurationConfig | None = None,
        now: Callable[[], datetime] = datetime.now,
        minutes_scale: float = 1.0,
    ):
        if minutes_scale <= 0:
            raise ValidationError("minutes_scale must be positive")
        self.engine = engine
        self.sessions = sessions
        self.tasks = tasks
        self.stats = stats
        self.events = events or EventEmitter()
        self._now = now
        # Length of one configured minute on the countdown
        self.minute_ms = MS_PER_MINUTE * minutes_scale

        self._durations = durations or DurationConfig()
        self._pending_durations: DurationConfig | None = None

        self.session_type = SessionType.WORK
        self.session_count = 1
        self.paused = False
        self.auto_start_eligible = False

        self.engine.on_tick = self._on_tick
        self.engine.on_complete = self.complete
        self.tasks.is_session_running = lambda: self.is_running

        self.engine.load(self.duration_ms(self.session_type))

    # ----- Queries -----
    @property
    def is_running(self) -> bool:
        return self.engine.running

    @property
    def durations(self) -> DurationConfig:
        return self._durations

    @property
    def pending_durations(self) -> DurationConfig | None:
        return self._pending_durations

    @property
    def state(self) -> CycleState:
        return CycleState(
            session_type=self.session_type,
            session_count=self.session_count,
            total_ms=self.engine.total_ms,
            remaining_ms=self.engine.remaining_ms,
            running=self.engine.running,
            paused=self.paused,
            anchor=self.engine.anchor,
            auto_start_eligible=self.auto_start_eligible,
        )

    def duration_ms(self, session_type: SessionType) -> float:
        minutes = {
            SessionType.WORK: self._durations.work_minutes,
            SessionType.SHORT_BREAK: self._durations.short_break_minutes,
            SessionType.LONG_BREAK: self._durations.long_break_minutes,
        }[session_type]
        return float(minutes * self.minute_ms)

    # ----- Commands -----
    def start(self) -> None:
        """Start or resume the countdown; pauses it when already running."""
        if self.engine.running:
            self.pause()
            return

        self.auto_start_eligible = False
        if self.paused:
            self.engine.resume(self.engine.total_ms, self.engine.remaining_ms)
            logger.info(f"Timer resumed: {self.session_type.value} {self.session_count}/{SESSIONS_PER_CYCLE}")
        else:
            self.engine.start(self.duration_ms(self.session_type))
            logger.info(f"Timer started: {self.session_type.value} {self.session_count}/{SESSIONS_PER_CYCLE}")
        self.paused = False
        self._emit_state()

    def pause(self) -> None:
        if not self.engine.running:
            raise InvalidOperation("Timer is not running")
        self.engine.pause()
        self.paused = True
        logger.info("Timer paused")
        self._emit_state()

    def reset(self) -> None:
        """Restart the current session from its full duration, idle."""
        self.engine.cancel()
        self._apply_pending_durations()
        self.engine.load(self.duration_ms(self.session_type))
        self.paused = False
        self.auto_start_eligible = False
        logger.info(f"Session reset: {self.session_type.value}")
        self._emit_state()

    def skip(self) -> None:
        """Move to the next state without recording the current session."""
        self.engine.cancel()
        skipped = self.session_type
        self._advance()
        logger.info(f"Skipped {skipped.value}, now {self.session_type.value}")
        self._emit_state()

    def stop(self) -> None:
        """Hard reset to Work(1), discarding progress."""
        self.engine.cancel()
        self.session_type = SessionType.WORK
        self.session_count = 1
        self._apply_pending_durations()
        self.engine.load(self.duration_ms(self.session_type))
        self.paused = False
        self.auto_start_eligible = False
        logger.info("Timer stopped")
        self._emit_state()

    def complete(self) -> None:
        """Engine completion: record, credit, transition, leave the next timer idle."""
        finished_type = self.session_type
        record = self._build_record(finished_type, self.engine.total_ms)

        self.sessions.append(record)
        if record.task_id:
            self.tasks.record_work_session(record.task_id)

        self._advance()
        if self.session_type.is_break:
            self.auto_start_eligible = True

        logger.info(f"{finished_type.label} complete, next: {self.session_type.label}")

        self.events.emit(ev.SESSION_COMPLETED, record)
        self._emit_state()
        if self.stats is not None:
            self.events.emit(ev.STATS_CHANGED, self.stats.compute())
        if self.auto_start_eligible:
            self.events.emit(ev.BREAK_AUTO_START_ELIGIBLE, self.session_type)

    def apply_durations(self, durations: DurationConfig) -> bool:
        """Use new durations now if idle or paused; otherwise hold them pending.

        Returns True when applied immediately.
        """
        if self.engine.running:
            self._pending_durations = durations
            logger.info("Durations saved; they apply after the running session")
            return False

        self._durations = durations
        self._pending_durations = None
        self.engine.load(self.duration_ms(self.session_type))
        self.paused = False
        self._emit_state()
        return True

    def report_suspension(self, hidden_ms: float) -> None:
        """Host reports ticks were withheld for ``hidden_ms`` while running."""
        self.engine.adjust_for_suspension(hidden_ms)

    # ----- Internals -----
    def _advance(self) -> None:
        self.session_type, self.session_count = next_session(self.session_type, self.session_count)
        self._apply_pending_durations()
        self.engine.load(self.duration_ms(self.session_type))
        self.paused = False
        self.auto_start_eligible = False

    def _apply_pending_durations(self) -> None:
        if self._pending_durations is not None:
            self._durations = self._pending_durations
            self._pending_durations = None

    def _build_record(self, session_type: SessionType, total_ms: float) -> SessionRecord:
        end = self._now()
        task = self.tasks.active_task if session_type is SessionType.WORK else None
        return SessionRecord(
            id=new_id(),
            date=end.date(),
            start_time=end - timedelta(milliseconds=total_ms),
            end_time=end,
            duration_minutes=round(total_ms / self.minute_ms, 3),
            type=session_type,
            task_id=task.id if task else None,
            task_name=task.text if task else None,
        )

    def _on_tick(self, remaining_ms: float, total_ms: float) -> None:
        self.events.emit(ev.TICK, remaining_ms, total_ms)

    def _emit_state(self) -> None:
        self.events.emit(ev.STATE_CHANGED, self.state)
