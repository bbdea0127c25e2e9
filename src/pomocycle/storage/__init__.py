"""Storage layer: key-value persistence and the session log."""

from pomocycle.storage.database import Database
from pomocycle.storage.kv import KeyValueStore, MemoryStore, SQLiteStore
from pomocycle.storage.sessions import SessionStore

__all__ = ["Database", "KeyValueStore", "MemoryStore", "SQLiteStore", "SessionStore"]
