"""Application facade: wires the core and exposes the command surface."""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from pomocycle.core import events as ev
from pomocycle.core.clock import Clock, MonotonicClock, local_today
from pomocycle.core.config import Config
from pomocycle.core.errors import InvalidOperation, ValidationError
from pomocycle.core.events import EventEmitter
from pomocycle.schemas import SessionRecord, Task
from pomocycle.stats.engine import Stats, StatsEngine
from pomocycle.storage.database import Database
from pomocycle.storage.kv import (
    DURATIONS_KEY,
    PREFERENCES_KEY,
    KeyValueStore,
    MemoryStore,
    SQLiteStore,
    load_value,
    save_value,
)
from pomocycle.storage.sessions import SessionStore
from pomocycle.tasks.ledger import TaskLedger
from pomocycle.timer.cycle import CycleController, CycleState
from pomocycle.timer.durations import DurationConfig, Preferences
from pomocycle.timer.engine import DEFAULT_TICK_INTERVAL_MS, TimerEngine
from pomocycle.timer.scheduler import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


class PomodoroApp:
    """Single entry point for presentation collaborators.

    Usage:
        app = PomodoroApp(MemoryStore())
        app.events.subscribe("tick", render)
        task = app.add_task("write report")
        app.select_task(task.id)
        app.start_timer()

    Every command maps to one core operation. Validation and invalid
    operations raise ``PomocycleError`` subclasses before any state
    changes; persistence problems never raise and are reported through
    the ``persistence_warning`` event and ``warnings``.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
        tick_interval_ms: float = DEFAULT_TICK_INTERVAL_MS,
        today: Callable[[], date] = local_today,
        now: Callable[[], datetime] = datetime.now,
        database: Database | None = None,
        minutes_scale: float = 1.0,
    ):
        self.store = store
        self.database = database
        self.events = EventEmitter()
        self.warnings: list[str] = []

        self.preferences = self._load_model(PREFERENCES_KEY, Preferences)
        durations = self._load_model(DURATIONS_KEY, DurationConfig)

        self.sessions = SessionStore(store, self._on_persistence_warning)
        self.tasks = TaskLedger(store, self._on_persistence_warning)
        self.stats_engine = StatsEngine(self.sessions, self.tasks, today)

        self.engine = TimerEngine(
            clock or MonotonicClock(),
            scheduler or AsyncioScheduler(),
            tick_interval_ms,
        )
        self.controller = CycleController(
            self.engine,
            self.sessions,
            self.tasks,
            stats=self.stats_engine,
            events=self.events,
            durations=durations,
            now=now,
            minutes_scale=minutes_scale,
        )

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> PomodoroApp:
        """Build an app on the storage backend named in ``config``.

        An unreadable database file does not stop the app: it runs on a
        memory store and reports a persistence warning instead.
        """
        problems: list[str] = []
        store: KeyValueStore
        database: Database | None = None

        if config.storage.backend == "memory":
            store = MemoryStore()
        else:
            database = Database(config.db_path)
            try:
                database.connect()
                if not database.check_integrity():
                    problems.append(f"Database {config.db_path} failed its integrity check")
                store = SQLiteStore(database)
            except sqlite3.Error as e:
                database.close()
                database = None
                store = MemoryStore()
                problems.append(f"Cannot open database {config.db_path}: {e}; changes are kept in memory only")

        kwargs.setdefault("tick_interval_ms", config.timer.tick_interval_ms)
        pomo = cls(store, database=database, **kwargs)
        for message in problems:
            logger.warning(message)
            pomo._on_persistence_warning(message)
        return pomo

    def backup(self, backup_dir: Path | None = None) -> Path:
        """Copy the database file aside; only the sqlite backend has one."""
        if self.database is None:
            raise InvalidOperation("Nothing to back up: data is not stored in a database")
        return self.database.backup(backup_dir)

    def close(self) -> None:
        self.controller.engine.cancel()
        if self.database is not None:
            self.database.close()

    # ----- Persistence helpers -----
    def _on_persistence_warning(self, message: str) -> None:
        self.warnings.append(message)
        self.events.emit(ev.PERSISTENCE_WARNING, message)

    def _load_model(self, key: str, model: type) -> Any:
        raw = load_value(self.store, key, None, self._on_persistence_warning)
        if raw is None:
            return model()
        if not isinstance(raw, dict):
            self._on_persistence_warning(f"Stored {key} is not an object; using defaults")
            return model()
        try:
            return model.parse(raw)
        except ValidationError as e:
            self._on_persistence_warning(f"Stored {key} is invalid ({e}); using defaults")
            return model()

    def _emit_stats(self) -> None:
        self.events.emit(ev.STATS_CHANGED, self.stats())

    # ----- Queries -----
    @property
    def state(self) -> CycleState:
        return self.controller.state

    @property
    def durations(self) -> DurationConfig:
        return self.controller.durations

    def stats(self) -> Stats:
        return self.stats_engine.compute()

    def history(self) -> dict[date, list[SessionRecord]]:
        return self.sessions.by_date()

    def list_tasks(self) -> list[Task]:
        return self.tasks.tasks

    # ----- Task commands -----
    def add_task(self, text: str) -> Task:
        return self.tasks.add(text)

    def edit_task(self, task_id: str, text: str) -> Task | None:
        return self.tasks.edit(task_id, text)

    def delete_task(self, task_id: str) -> bool:
        deleted = self.tasks.delete(task_id)
        if deleted:
            self._emit_stats()
        return deleted

    def select_task(self, task_id: str) -> str | None:
        return self.tasks.select(task_id)

    def toggle_task_complete(self, task_id: str) -> Task | None:
        task = self.tasks.toggle_complete(task_id)
        if task is not None:
            self._emit_stats()
        return task

    # ----- Timer commands -----
    def start_timer(self) -> None:
        self.controller.start()

    def pause_timer(self) -> None:
        self.controller.pause()

    def reset_timer(self) -> None:
        self.controller.reset()

    def skip_session(self) -> None:
        self.controller.skip()

    def stop_timer(self) -> None:
        self.controller.stop()

    def report_suspension(self, hidden_ms: float) -> None:
        self.controller.report_suspension(hidden_ms)

    # ----- Settings commands -----
    def save_duration_config(
        self,
        work_minutes: Any,
        short_break_minutes: Any,
        long_break_minutes: Any,
    ) -> DurationConfig:
        """Validate and persist durations; raises ``ValidationError`` on bad input."""
        durations = DurationConfig.parse(
            {
                "work_minutes": work_minutes,
                "short_break_minutes": short_break_minutes,
                "long_break_minutes": long_break_minutes,
            }
        )
        save_value(self.store, DURATIONS_KEY, durations.model_dump(), self._on_persistence_warning)
        self.controller.apply_durations(durations)
        return durations

    def reset_duration_config(self) -> DurationConfig:
        defaults = DurationConfig()
        return self.save_duration_config(
            defaults.work_minutes,
            defaults.short_break_minutes,
            defaults.long_break_minutes,
        )

    def save_preferences(self, **changes: Any) -> Preferences:
        preferences = Preferences.parse({**self.preferences.model_dump(), **changes})
        save_value(self.store, PREFERENCES_KEY, preferences.model_dump(), self._on_persistence_warning)
        self.preferences = preferences
        return preferences

    def clear_history(self) -> None:
        """Erase the session log. Confirming with the user is the caller's job."""
        self.sessions.clear()
        self._emit_stats()
