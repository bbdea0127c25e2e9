"""Key-value persistence contract and backends.

Values are JSON-serialisable structures. Backends raise
``PersistenceFailure`` on any read/write problem; callers decide what to do.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Callable, Protocol

from pomocycle.core.errors import PersistenceFailure
from pomocycle.storage.database import Database

logger = logging.getLogger(__name__)

# Persisted entity keys
DURATIONS_KEY = "pomocycle-durations"
TASKS_KEY = "pomocycle-tasks"
ACTIVE_TASK_KEY = "pomocycle-active-task"
SESSIONS_KEY = "pomocycle-sessions"
PREFERENCES_KEY = "pomocycle-preferences"

WarningHook = Callable[[str], None]


class KeyValueStore(Protocol):
    """Minimal get/set/remove persistence contract."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; values are kept as JSON text like on disk."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return _decode(key, raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteStore:
    """Store backed by the ``kv`` table of the application database."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Any | None:
        try:
            row = self.db.fetch_one("SELECT value FROM kv WHERE key = ?", (key,))
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceFailure(f"Failed to read {key}: {e}", key) from e
        if row is None:
            return None
        return _decode(key, row["value"])

    def set(self, key: str, value: Any) -> None:
        raw = _encode(key, value)
        try:
            self.db.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP""",
                (key, raw),
            )
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceFailure(f"Failed to write {key}: {e}", key) from e

    def remove(self, key: str) -> None:
        try:
            self.db.execute("DELETE FROM kv WHERE key = ?", (key,))
        except (sqlite3.Error, RuntimeError) as e:
            raise PersistenceFailure(f"Failed to remove {key}: {e}", key) from e


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise PersistenceFailure(f"Value for {key} is not serialisable: {e}", key) from e


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceFailure(f"Corrupt data under {key}: {e}", key) from e


def load_value(
    store: KeyValueStore,
    key: str,
    default: Any,
    on_warning: WarningHook | None = None,
) -> Any:
    """Read ``key``, falling back to ``default`` on a missing or unreadable value."""
    try:
        value = store.get(key)
    except PersistenceFailure as e:
        _warn(f"{e}; using defaults", on_warning)
        return default
    return default if value is None else value


def save_value(
    store: KeyValueStore,
    key: str,
    value: Any,
    on_warning: WarningHook | None = None,
) -> bool:
    """Write ``key``; a failure is reported once and the caller keeps going."""
    try:
        if value is None:
            store.remove(key)
        else:
            store.set(key, value)
    except PersistenceFailure as e:
        _warn(f"{e}; changes are kept in memory only", on_warning)
        return False
    return True


def _warn(message: str, on_warning: WarningHook | None) -> None:
    logger.warning(message)
    if on_warning:
        on_warning(message)
