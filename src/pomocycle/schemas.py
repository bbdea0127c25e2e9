"""Domain records shared by the timer, stores and statistics."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class SessionType(str, Enum):
    """Kind of interval in the work/break cycle."""

    WORK = "work"
    SHORT_BREAK = "short-break"
    LONG_BREAK = "long-break"

    @property
    def label(self) -> str:
        return {
            SessionType.WORK: "Work",
            SessionType.SHORT_BREAK: "Short Break",
            SessionType.LONG_BREAK: "Long Break",
        }[self]

    @property
    def is_break(self) -> bool:
        return self is not SessionType.WORK


def new_id() -> str:
    """Opaque unique identifier for tasks and session records."""
    return uuid.uuid4().hex


@dataclass
class Task:
    """A unit of work that completed Work sessions can be credited to."""

    id: str = field(default_factory=new_id)
    text: str = ""
    completed: bool = False
    sessions_spent: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=data["id"],
            text=data["text"],
            completed=bool(data.get("completed", False)),
            sessions_spent=int(data.get("sessions_spent", 0)),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "sessions_spent": self.sessions_spent,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class SessionRecord:
    """A naturally completed session. Immutable once created.

    ``task_id``/``task_name`` are a snapshot of the active task at completion
    and are only ever set for Work sessions.
    """

    id: str
    date: date
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    type: SessionType
    task_id: str | None = None
    task_name: str | None = None

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        if self.type is not SessionType.WORK and (self.task_id or self.task_name):
            raise ValueError("Only work sessions can be attributed to a task")

    @property
    def is_work(self) -> bool:
        return self.type is SessionType.WORK

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionRecord:
        return cls(
            id=data["id"],
            date=date.fromisoformat(data["date"]),
            start_time=datetime.fromisoformat(data["start_time"]),
            end_time=datetime.fromisoformat(data["end_time"]),
            duration_minutes=float(data["duration_minutes"]),
            type=SessionType(data["type"]),
            task_id=data.get("task_id"),
            task_name=data.get("task_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "type": self.type.value,
            "task_id": self.task_id,
            "task_name": self.task_name,
        }
