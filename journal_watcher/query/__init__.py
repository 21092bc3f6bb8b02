"""Time-range queries over stored events."""

from .timestamps import parse_timestamp_loosely, resolve_range
from .service import QueryService

__all__ = ["parse_timestamp_loosely", "resolve_range", "QueryService"]
