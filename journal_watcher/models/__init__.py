"""Data models for stored events."""

from .event import Event, MAX_TIMESTAMP

__all__ = ["Event", "MAX_TIMESTAMP"]
