"""Append-only log of completed sessions, most recent first."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date

from pomocycle.schemas import SessionRecord
from pomocycle.storage.kv import SESSIONS_KEY, KeyValueStore, WarningHook, load_value, save_value

logger = logging.getLogger(__name__)


class SessionHistory:
    """Lazy, restartable view over a snapshot of the log.

    Every ``iter()`` starts again from the most recent record.
    """

    def __init__(self, records: tuple[SessionRecord, ...]):
        self._records = records

    def __iter__(self) -> Iterator[SessionRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


class SessionStore:
    """Completed-session log persisted under a single key.

    Usage:
        sessions = SessionStore(MemoryStore())
        sessions.append(record)
        for record in sessions.all():
            ...
    """

    def __init__(self, store: KeyValueStore, on_warning: WarningHook | None = None):
        self.store = store
        self.on_warning = on_warning
        self._records: list[SessionRecord] = self._load()

    def _load(self) -> list[SessionRecord]:
        raw = load_value(self.store, SESSIONS_KEY, [], self.on_warning)
        records: list[SessionRecord] = []
        skipped = 0
        for item in raw if isinstance(raw, list) else []:
            try:
                records.append(SessionRecord.from_dict(item))
            except (KeyError, TypeError, ValueError):
                skipped += 1
        if skipped or not isinstance(raw, list):
            message = f"Ignored {skipped or 'all'} unreadable session record(s)"
            logger.warning(message)
            if self.on_warning:
                self.on_warning(message)
        logger.debug(f"Loaded {len(records)} session records")
        return records

    def _save(self) -> None:
        save_value(
            self.store,
            SESSIONS_KEY,
            [r.to_dict() for r in self._records],
            self.on_warning,
        )

    def append(self, record: SessionRecord) -> None:
        """Prepend ``record`` and persist the log."""
        self._records.insert(0, record)
        self._save()
        logger.info(f"Recorded {record.type.value} session ({record.duration_minutes:g} min)")

    def all(self) -> SessionHistory:
        return SessionHistory(tuple(self._records))

    def clear(self) -> None:
        """Drop every record, in memory and on disk. Irreversible."""
        self._records = []
        save_value(self.store, SESSIONS_KEY, None, self.on_warning)
        logger.info("Session history cleared")

    def __len__(self) -> int:
        return len(self._records)

    def by_date(self) -> dict[date, list[SessionRecord]]:
        """Group records by calendar date, most recent date first."""
        return group_by_date(self._records)


def group_by_date(records: Iterable[SessionRecord]) -> dict[date, list[SessionRecord]]:
    groups: dict[date, list[SessionRecord]] = {}
    for record in records:
        groups.setdefault(record.date, []).append(record)
    return dict(sorted(groups.items(), key=lambda item: item[0], reverse=True))
