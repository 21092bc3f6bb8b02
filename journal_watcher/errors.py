"""
Error types raised by the watcher.

Configuration and source errors are fatal to startup and ingestion; storage
errors are fatal on the write path and reported as server errors on the read
path. Querying an unknown namespace is not an error.
"""

from typing import Optional


class WatcherError(Exception):
    """Base class for all watcher errors."""


class ConfigError(WatcherError):
    """Malformed or uncompileable event definitions."""

    def __init__(
        self,
        message: str,
        event: Optional[str] = None,
        pattern: Optional[str] = None,
        attribute: Optional[str] = None,
    ):
        super().__init__(message)
        self.event = event
        self.pattern = pattern
        self.attribute = attribute


class SourceError(WatcherError):
    """The line source became unreadable or terminated abnormally."""


class StorageError(WatcherError):
    """An insert or range query against the event store failed."""
