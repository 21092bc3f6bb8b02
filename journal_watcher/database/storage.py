"""
Time-indexed event store.

Events are partitioned into namespaces (one per event name) and ordered by
timestamp inside each namespace. The ingestion pipeline and the query server
share one store; every operation goes through the store's lock so readers
never observe a half-written event and acknowledged writes are visible to
subsequent reads.
"""

import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Union

from .codec import EventCodec
from .schema import DatabaseManager, create_tables
from ..errors import StorageError
from ..models.event import Event, MAX_TIMESTAMP

logger = logging.getLogger(__name__)


class EventStore:
    """
    Namespaced, timestamp-ordered event storage on SQLite.

    Features:
    - Lazy namespace creation on first insert
    - Order-preserving binary timestamp keys
    - Sequence numbers so equal timestamps never overwrite each other
    - Single re-entrant lock with optional acquisition timeout
    """

    def __init__(self, db: DatabaseManager, codec: Optional[EventCodec] = None):
        """
        Initialize event store.

        Args:
            db: Database manager with the event tables created
            codec: Event codec (defaults to EventCodec())
        """
        self.db = db
        self.codec = codec or EventCodec()
        self._lock = threading.RLock()
        self._closed = False

        # Namespaces this store has already registered; reads always go to the table
        self._namespaces: Set[str] = set()

        self.stats = {
            "events_stored": 0,
            "range_queries": 0,
            "storage_time": 0.0,
        }

        self._load_namespaces()

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> "EventStore":
        """
        Open (or create) a store at the given path.

        Raises:
            StorageError: If the database cannot be opened or initialized
        """
        try:
            db = DatabaseManager(db_path)
            create_tables(db)
        except (sqlite3.Error, RuntimeError, OSError) as e:
            raise StorageError(f"Cannot open event store at {db_path}: {e}") from e
        if not db.health_check():
            db.close()
            raise StorageError(f"Event store at {db_path} failed its health check")
        return cls(db)

    def _load_namespaces(self):
        rows = self.db.execute("SELECT name FROM namespaces") or []
        self._namespaces = {row["name"] for row in rows}
        logger.debug(f"Loaded {len(self._namespaces)} existing namespaces")

    @contextmanager
    def access(self, timeout: Optional[float] = None) -> Iterator[DatabaseManager]:
        """
        Acquire exclusive access to the underlying database.

        Args:
            timeout: Seconds to wait for the lock, None to wait indefinitely

        Raises:
            StorageError: If the lock is not acquired in time or the store is closed
        """
        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise StorageError(f"Timed out after {timeout}s waiting for event store access")
        try:
            if self._closed:
                raise StorageError("Event store is closed")
            yield self.db
        finally:
            self._lock.release()

    def insert(
        self,
        namespace: str,
        timestamp: int,
        event: Event,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Durably store an event in a namespace.

        Args:
            namespace: Event name
            timestamp: Seconds since epoch used as the ordering key
            event: Event to store
            timeout: Optional lock timeout in seconds

        Raises:
            StorageError: If encoding, the write or the commit fails
        """
        key = self.codec.encode_key(timestamp)
        payload = self.codec.encode_event(event)
        start_time = time.time()

        with self.access(timeout) as db:
            created = False
            try:
                created = self._ensure_namespace(db, namespace)
                db.execute(
                    "INSERT INTO events (namespace, ts_key, payload) VALUES (?, ?, ?)",
                    (namespace, key, payload),
                    fetch_results=False,
                )
                db.commit()
            except sqlite3.Error as e:
                db.rollback()
                if created:
                    self._namespaces.discard(namespace)
                raise StorageError(f"Failed to insert event into '{namespace}': {e}") from e

            self.stats["events_stored"] += 1
            self.stats["storage_time"] += time.time() - start_time

    def _ensure_namespace(self, db: DatabaseManager, namespace: str) -> bool:
        if namespace in self._namespaces:
            return False
        db.execute(
            "INSERT OR IGNORE INTO namespaces (name, created_at) VALUES (?, ?)",
            (namespace, time.time()),
            fetch_results=False,
        )
        self._namespaces.add(namespace)
        logger.info(f"Created namespace '{namespace}'")
        return True

    def range_query(
        self,
        namespace: str,
        start: int = 0,
        end: int = MAX_TIMESTAMP,
        timeout: Optional[float] = None,
    ) -> List[Event]:
        """
        Fetch events of a namespace with start <= timestamp < end.

        Args:
            namespace: Event name
            start: Inclusive lower bound
            end: Exclusive upper bound
            timeout: Optional lock timeout in seconds

        Returns:
            Events in ascending timestamp order, ties in insertion order.
            Unknown namespaces yield an empty list.
        """
        start = max(int(start), 0)
        end = min(int(end), MAX_TIMESTAMP)
        if start >= end:
            return []

        start_key = self.codec.encode_key(start)
        end_key = self.codec.encode_key(end)

        with self.access(timeout) as db:
            self.stats["range_queries"] += 1
            try:
                rows = db.execute(
                    """
                    SELECT payload FROM events
                    WHERE namespace = ? AND ts_key >= ? AND ts_key < ?
                    ORDER BY ts_key, seq
                    """,
                    (namespace, start_key, end_key),
                ) or []
            except sqlite3.Error as e:
                raise StorageError(f"Range query on '{namespace}' failed: {e}") from e

        return [self.codec.decode_event(row["payload"]) for row in rows]

    def namespaces(self) -> List[str]:
        """List all namespaces that have been written to, by any writer of the file."""
        with self.access() as db:
            return self._namespace_names(db)

    @staticmethod
    def _namespace_names(db: DatabaseManager) -> List[str]:
        try:
            rows = db.execute("SELECT name FROM namespaces ORDER BY name") or []
        except sqlite3.Error as e:
            raise StorageError(f"Listing namespaces failed: {e}") from e
        return [row["name"] for row in rows]

    def count(self, namespace: str) -> int:
        """Count events stored in a namespace."""
        with self.access() as db:
            try:
                rows = db.execute(
                    "SELECT COUNT(*) AS n FROM events WHERE namespace = ?", (namespace,)
                )
            except sqlite3.Error as e:
                raise StorageError(f"Count on '{namespace}' failed: {e}") from e
        return rows[0]["n"] if rows else 0

    def get_stats(self) -> Dict[str, float]:
        """Get storage statistics."""
        with self.access() as db:
            return dict(self.stats, namespaces=len(self._namespace_names(db)))

    def close(self):
        """Close the store; later operations raise StorageError."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.db.close()
            logger.info("Event store closed")

    def __enter__(self) -> "EventStore":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
