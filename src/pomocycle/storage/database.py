"""SQLite database management with WAL mode and schema versioning."""

from __future__ import annotations

import logging
import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 1

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

-- Key-value store for persisted entities (JSON values)
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class Database:
    """SQLite database manager with WAL mode.

    One connection, one writer: the app runs on a single logical thread.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._connection: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("Database not connected")
        return self._connection

    def connect(self) -> None:
        """Open the connection and apply the schema."""
        if self._connection is not None:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = sqlite3.connect(self.db_path, isolation_level=None)
        self._connection.execute("PRAGMA journal_mode=WAL")
        self._connection.execute("PRAGMA synchronous=NORMAL")
        self._connection.execute("PRAGMA busy_timeout=5000")
        self._connection.row_factory = sqlite3.Row

        self._init_schema()

        logger.info(f"Database connected: {self.db_path}")

    def _init_schema(self) -> None:
        conn = self.connection
        conn.executescript(SCHEMA)

        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        current_version = row[0] if row and row[0] else 0

        if current_version < SCHEMA_VERSION:
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            logger.info(f"Schema updated to version {SCHEMA_VERSION}")

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    def execute(self, query: str, params: tuple[Any, ...] = ()) -> int:
        """Execute a query and return last row ID."""
        cursor = self.connection.execute(query, params)
        return cursor.lastrowid or 0

    def fetch_one(self, query: str, params: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        """Fetch a single row."""
        row = self.connection.execute(query, params).fetchone()
        if row:
            return dict(row)
        return None

    def check_integrity(self) -> bool:
        """Check database integrity."""
        row = self.connection.execute("PRAGMA integrity_check").fetchone()
        is_ok = row is not None and row[0] == "ok"

        if not is_ok:
            logger.error("Database integrity check failed!")
        return is_ok

    def backup(self, backup_dir: Path | None = None) -> Path:
        """Copy the database file into ``backup_dir``."""
        backup_dir = backup_dir or self.db_path.parent / "backups"
        backup_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = backup_dir / f"pomocycle_{timestamp}.db"

        if self._connection is not None:
            self._connection.execute("PRAGMA wal_checkpoint(FULL)")
        shutil.copy2(self.db_path, backup_path)
        logger.info(f"Database backed up to: {backup_path}")
        return backup_path
