"""
Database module for event storage.

Provides the SQLite schema, the event codec and the namespaced,
time-indexed event store.
"""

from .schema import DatabaseManager, create_tables
from .codec import EventCodec
from .storage import EventStore

__all__ = ["DatabaseManager", "create_tables", "EventCodec", "EventStore"]
