"""
Pytest configuration and shared fixtures for the test suite.

Provides temporary event stores, compiled sample definitions, sample journal
lines and a deterministic clock.
"""

import pytest

from journal_watcher.database.storage import EventStore
from journal_watcher.patterns.compiler import RawEventDefinition, compile_definitions


class FakeClock:
    """Clock returning a fixed, manually advanced time."""

    def __init__(self, now: int = 1700000000):
        self.now = now
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return self.now

    def advance(self, seconds: int = 1):
        self.now += seconds


@pytest.fixture
def temp_store(tmp_path):
    """Create an event store in a temporary directory."""
    store = EventStore.open(tmp_path / "events.db")
    yield store
    store.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def raw_definitions():
    """Raw event definitions for an sshd-like service."""
    return [
        RawEventDefinition(
            event="login",
            pattern=r"Accepted \w+ for",
            attribute_patterns={
                "user": r"for (\w+) from",
                "address": r"from ([\d.]+) port (\d+)",
                "key_type": r"ssh2: (\w+)",
            },
        ),
        RawEventDefinition(
            event="failed_login",
            pattern=r"Failed password",
            attribute_patterns={"user": r"for (?:invalid user )?(\w+) from"},
        ),
        RawEventDefinition(
            event="any_session",
            pattern=r"for \w+ from",
        ),
    ]


@pytest.fixture
def definitions(raw_definitions):
    return compile_definitions(raw_definitions)


@pytest.fixture
def sample_journal_lines():
    """Sample journal lines as printed by `journalctl -o cat`."""
    return [
        "Server listening on 0.0.0.0 port 22.",
        "Accepted publickey for alice from 10.0.0.7 port 51234 ssh2: ED25519 SHA256:abc",
        "Failed password for invalid user bob from 10.0.0.9 port 40000 ssh2",
        "pam_unix(sshd:session): session opened for user alice(uid=1000) by (uid=0)",
        "Accepted password for carol from 192.168.1.20 port 2222 ssh2",
    ]


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "storage: mark test as event store related")
    config.addinivalue_line("markers", "query: mark test as query API related")


# Pytest collection configuration
def pytest_collection_modifyitems(config, items):
    """Modify collected test items with markers."""
    for item in items:
        basename = item.fspath.basename

        if "test_concurrency" in basename or "test_runtime" in basename:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "test_storage" in basename or "test_codec" in basename:
            item.add_marker(pytest.mark.storage)

        if "test_query" in basename or "test_api" in basename:
            item.add_marker(pytest.mark.query)
