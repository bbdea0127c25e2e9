"""Error taxonomy shared by the timer, stores and task ledger."""

from __future__ import annotations


class PomocycleError(Exception):
    """Base class for all errors raised by pomocycle."""


class ValidationError(PomocycleError, ValueError):
    """Input rejected before any state was changed (task text, durations, preferences)."""


class InvalidOperation(PomocycleError):
    """Operation not allowed in the current state; nothing was mutated."""


class PersistenceFailure(PomocycleError):
    """Reading or writing the key-value store failed, or stored data is corrupt."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key
