"""Task list with per-task session counts and the active-task selection."""

from __future__ import annotations

import logging
from typing import Callable

from pomocycle.core.errors import InvalidOperation, ValidationError
from pomocycle.schemas import Task
from pomocycle.storage.kv import ACTIVE_TASK_KEY, TASKS_KEY, KeyValueStore, WarningHook, load_value, save_value

logger = logging.getLogger(__name__)

MAX_TASK_LENGTH = 100


def validate_task_text(text: str) -> str:
    """Trim ``text`` and enforce 1..100 characters."""
    trimmed = (text or "").strip()
    if not trimmed:
        raise ValidationError("Task name cannot be empty")
    if len(trimmed) > MAX_TASK_LENGTH:
        raise ValidationError(f"Task name too long (max {MAX_TASK_LENGTH} characters)")
    return trimmed


class TaskLedger:
    """CRUD over tasks, newest first, plus at most one active task.

    ``is_session_running`` is wired by the cycle controller; selection is
    locked while a countdown is active.
    """

    def __init__(self, store: KeyValueStore, on_warning: WarningHook | None = None):
        self.store = store
        self.on_warning = on_warning
        self.is_session_running: Callable[[], bool] = lambda: False

        self._tasks: list[Task] = self._load_tasks()
        self._active_task_id: str | None = self._load_active()

    # ----- Loading / saving -----
    def _load_tasks(self) -> list[Task]:
        raw = load_value(self.store, TASKS_KEY, [], self.on_warning)
        tasks: list[Task] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                tasks.append(Task.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable task entry: {e}")
        return tasks

    def _load_active(self) -> str | None:
        active = load_value(self.store, ACTIVE_TASK_KEY, None, self.on_warning)
        if active is not None and self.get(active) is None:
            # Stale reference to a task that no longer exists
            return None
        return active

    def _save_tasks(self) -> None:
        save_value(self.store, TASKS_KEY, [t.to_dict() for t in self._tasks], self.on_warning)

    def _save_active(self) -> None:
        save_value(self.store, ACTIVE_TASK_KEY, self._active_task_id, self.on_warning)

    # ----- Queries -----
    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def active_task_id(self) -> str | None:
        return self._active_task_id

    @property
    def active_task(self) -> Task | None:
        if self._active_task_id is None:
            return None
        return self.get(self._active_task_id)

    def get(self, task_id: str) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def task_at(self, position: int) -> Task | None:
        """Task at 1-based ``position`` in list order, if any."""
        if 1 <= position <= len(self._tasks):
            return self._tasks[position - 1]
        return None

    # ----- Mutations -----
    def add(self, text: str) -> Task:
        task = Task(text=validate_task_text(text))
        self._tasks.insert(0, task)
        self._save_tasks()
        logger.info(f"Task added: {task.text}")
        return task

    def edit(self, task_id: str, text: str) -> Task | None:
        trimmed = validate_task_text(text)
        task = self.get(task_id)
        if task is None:
            return None
        task.text = trimmed
        self._save_tasks()
        return task

    def toggle_complete(self, task_id: str) -> Task | None:
        task = self.get(task_id)
        if task is None:
            return None
        task.completed = not task.completed
        self._save_tasks()
        return task

    def delete(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        if self._active_task_id == task_id:
            self._active_task_id = None
            self._save_active()
        self._save_tasks()
        logger.info(f"Task deleted: {task.text}")
        return True

    def select(self, task_id: str) -> str | None:
        """Toggle the active task; returns the new active id."""
        if self.is_session_running():
            raise InvalidOperation("Cannot change task while timer is running")
        if self.get(task_id) is None:
            return self._active_task_id

        self._active_task_id = None if self._active_task_id == task_id else task_id
        self._save_active()
        return self._active_task_id

    def record_work_session(self, task_id: str) -> None:
        """Credit one completed Work session to ``task_id``."""
        task = self.get(task_id)
        if task is None:
            return
        task.sessions_spent += 1
        self._save_tasks()
