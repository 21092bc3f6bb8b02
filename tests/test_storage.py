"""
Tests for the namespaced, time-indexed event store.
"""

import threading

import pytest

from journal_watcher.database.schema import DatabaseManager, create_tables
from journal_watcher.database.storage import EventStore
from journal_watcher.errors import StorageError
from journal_watcher.models.event import Event, MAX_TIMESTAMP


def _insert_all(store, namespace, timestamps):
    for i, ts in enumerate(timestamps):
        store.insert(namespace, ts, Event(timestamp=ts, attributes={"n": str(i)}))


class TestRangeQuery:
    """Test range query semantics."""

    def test_duplicate_timestamps_are_kept(self, temp_store):
        _insert_all(temp_store, "restart", [10, 20, 20, 30])

        events = temp_store.range_query("restart", 15, 25)

        assert [e.timestamp for e in events] == [20, 20]
        assert [e.attributes["n"] for e in events] == ["1", "2"]

    def test_start_inclusive_end_exclusive(self, temp_store):
        _insert_all(temp_store, "restart", [10, 20, 30])

        assert [e.timestamp for e in temp_store.range_query("restart", 10, 30)] == [10, 20]

    def test_ascending_order_across_digit_boundaries(self, temp_store):
        _insert_all(temp_store, "restart", [1000, 9, 100, 99, 10])

        assert [e.timestamp for e in temp_store.range_query("restart")] == [9, 10, 99, 100, 1000]
        assert [e.timestamp for e in temp_store.range_query("restart", 10, 100)] == [10, 99]

    def test_unknown_namespace_is_empty(self, temp_store):
        assert temp_store.range_query("never_written", 0, MAX_TIMESTAMP) == []

    def test_empty_or_inverted_range(self, temp_store):
        _insert_all(temp_store, "restart", [10, 20])

        assert temp_store.range_query("restart", 20, 20) == []
        assert temp_store.range_query("restart", 30, 10) == []

    def test_namespaces_are_independent(self, temp_store):
        _insert_all(temp_store, "a", [1, 2, 3])
        _insert_all(temp_store, "b", [2])

        assert len(temp_store.range_query("a")) == 3
        assert len(temp_store.range_query("b")) == 1


class TestStoreLifecycle:
    """Test namespace bookkeeping, persistence and closing."""

    def test_namespaces_created_lazily(self, temp_store):
        assert temp_store.namespaces() == []

        temp_store.range_query("login")
        assert temp_store.namespaces() == []

        _insert_all(temp_store, "login", [5])
        _insert_all(temp_store, "failed_login", [6])
        assert temp_store.namespaces() == ["failed_login", "login"]

    def test_count(self, temp_store):
        _insert_all(temp_store, "login", [5, 5, 6])

        assert temp_store.count("login") == 3
        assert temp_store.count("unknown") == 0

    def test_events_survive_reopen(self, tmp_path):
        db_path = tmp_path / "nested" / "events.db"

        with EventStore.open(db_path) as store:
            store.insert("login", 1700000000, Event(1700000000, {"user": "alice"}))

        with EventStore.open(db_path) as store:
            assert store.namespaces() == ["login"]
            assert store.range_query("login") == [Event(1700000000, {"user": "alice"})]

    def test_writes_from_another_store_on_same_file_are_visible(self, tmp_path):
        db_path = tmp_path / "events.db"

        with EventStore.open(db_path) as serving, EventStore.open(db_path) as ingesting:
            assert serving.range_query("login") == []

            ingesting.insert("login", 100, Event(100, {"user": "alice"}))

            assert serving.count("login") == 1
            assert serving.range_query("login") == [Event(100, {"user": "alice"})]
            assert serving.namespaces() == ["login"]
            assert serving.get_stats()["namespaces"] == 1

    def test_open_runs_health_check(self, tmp_path):
        with EventStore.open(tmp_path / "events.db") as store:
            assert store.db.health_check()

    def test_health_check_fails_without_event_tables(self):
        db = DatabaseManager(":memory:")

        assert not db.health_check()
        create_tables(db)
        assert db.health_check()
        db.close()

    def test_in_memory_database(self):
        db = DatabaseManager(":memory:")
        create_tables(db)
        store = EventStore(db)

        store.insert("x", 1, Event(1))
        assert store.range_query("x") == [Event(1)]
        store.close()

    def test_operations_after_close_fail(self, tmp_path):
        store = EventStore.open(tmp_path / "events.db")
        store.close()

        with pytest.raises(StorageError):
            store.insert("login", 1, Event(1))
        with pytest.raises(StorageError):
            store.range_query("login")

    def test_out_of_range_timestamp_rejected(self, temp_store):
        with pytest.raises(StorageError):
            temp_store.insert("login", -1, Event(0))

    def test_stats(self, temp_store):
        _insert_all(temp_store, "login", [1, 2])
        temp_store.range_query("login")

        stats = temp_store.get_stats()
        assert stats["events_stored"] == 2
        assert stats["range_queries"] == 1
        assert stats["namespaces"] == 1


class TestStoreLocking:
    """Test access coordination."""

    def test_lock_timeout_raises_storage_error(self, temp_store):
        held = threading.Event()
        release = threading.Event()

        def hold_lock():
            with temp_store.access():
                held.set()
                release.wait(5)

        holder = threading.Thread(target=hold_lock)
        holder.start()
        try:
            assert held.wait(5)
            with pytest.raises(StorageError, match="Timed out"):
                temp_store.range_query("login", timeout=0.1)
        finally:
            release.set()
            holder.join()

    def test_access_is_reentrant(self, temp_store):
        with temp_store.access():
            temp_store.insert("login", 1, Event(1))
            assert temp_store.count("login") == 1
