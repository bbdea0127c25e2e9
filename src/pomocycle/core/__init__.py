"""Core building blocks: configuration, clocks, events and errors."""

from pomocycle.core.config import Config, get_config
from pomocycle.core.errors import InvalidOperation, PersistenceFailure, PomocycleError, ValidationError
from pomocycle.core.events import EventEmitter

__all__ = [
    "Config",
    "get_config",
    "EventEmitter",
    "PomocycleError",
    "ValidationError",
    "InvalidOperation",
    "PersistenceFailure",
]
