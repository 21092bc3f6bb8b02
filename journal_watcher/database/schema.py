"""
Database schema for event storage.

SQLite database holding one row per stored event. Each row belongs to a
namespace (the event name) and is keyed by an order-preserving timestamp key
plus a sequence number that keeps events with identical timestamps apart.
"""

import sqlite3
import logging
import time
from pathlib import Path
from typing import Optional, Dict, Any, List, Union

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1

MEMORY_PATH = ":memory:"

EVENT_TABLES = ("namespaces", "events")


class DatabaseManager:
    """
    SQLite connection manager.

    Provides query execution, transaction management and schema helpers over
    a single connection that may be shared between threads. Callers are
    responsible for serializing access.
    """

    def __init__(self, db_path: Union[str, Path] = "events.db"):
        """
        Initialize database manager.

        Args:
            db_path: SQLite database path, or ":memory:"
        """
        self.db_path = db_path if str(db_path) == MEMORY_PATH else Path(db_path)
        self.connection: Optional[sqlite3.Connection] = None
        self._setup_sqlite_database()

    def _setup_sqlite_database(self):
        """Initialize SQLite database with optimized settings."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            test_file = self.db_path.parent / ".write_test"
            try:
                test_file.touch()
                test_file.unlink()
            except (PermissionError, OSError) as e:
                logger.error(f"No write permission to database directory {self.db_path.parent}: {e}")
                raise RuntimeError(f"Cannot write to database directory: {e}")

        self.connection = sqlite3.connect(str(self.db_path), timeout=30.0, check_same_thread=False)

        if isinstance(self.db_path, Path):
            self.connection.execute("PRAGMA journal_mode=WAL")  # Write-Ahead Logging
        self.connection.execute("PRAGMA synchronous=NORMAL")
        self.connection.execute("PRAGMA temp_store=MEMORY")

        self.connection.row_factory = sqlite3.Row

        logger.info(f"SQLite database initialized at {self.db_path}")

    def execute(
        self, query: str, params: tuple = (), fetch_results: bool = True
    ) -> Optional[List[Dict[str, Any]]]:
        """Execute a single query."""
        cursor = self.connection.execute(query, params)
        if fetch_results and cursor.description:
            return [dict(row) for row in cursor.fetchall()]
        return None

    def commit(self):
        """Commit current transaction."""
        self.connection.commit()

    def rollback(self):
        """Rollback current transaction."""
        self.connection.rollback()

    def close(self):
        """Close database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def health_check(self) -> bool:
        """Check that the connection is usable and the event tables are present."""
        try:
            rows = self.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name IN (?, ?)",
                EVENT_TABLES,
            )
        except sqlite3.Error as e:
            logger.error(f"Database health check failed: {e}")
            return False
        return len(rows or []) == len(EVENT_TABLES)


def create_tables(db: DatabaseManager):
    """Create all database tables and indexes if they don't exist."""
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            version INTEGER PRIMARY KEY,
            applied_at REAL NOT NULL
        )
        """
    )
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS namespaces (
            name TEXT PRIMARY KEY,
            created_at REAL NOT NULL
        )
        """
    )
    # seq is the rowid alias, assigned in insertion order
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            namespace TEXT NOT NULL REFERENCES namespaces(name),
            ts_key BLOB NOT NULL,
            payload BLOB NOT NULL
        )
        """
    )
    db.execute(
        "CREATE INDEX IF NOT EXISTS idx_events_namespace_ts ON events (namespace, ts_key, seq)"
    )

    existing = db.execute("SELECT MAX(version) AS version FROM schema_version")
    version = existing[0]["version"] if existing else None
    if version is None:
        db.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (CURRENT_SCHEMA_VERSION, time.time()),
        )
        logger.info(f"Created event schema version {CURRENT_SCHEMA_VERSION}")
    elif version != CURRENT_SCHEMA_VERSION:
        logger.warning(
            f"Database schema version {version} differs from expected {CURRENT_SCHEMA_VERSION}"
        )

    db.commit()
