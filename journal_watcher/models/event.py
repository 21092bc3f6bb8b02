"""
Event model.

An event is a timestamped set of attributes extracted from one line that
matched one event definition.
"""

from dataclasses import dataclass, field
from typing import Dict, Any

# Largest timestamp representable as an unsigned 64-bit integer
MAX_TIMESTAMP = 2**64 - 1


@dataclass(frozen=True)
class Event:
    """A notable event extracted from the line stream."""

    timestamp: int
    attributes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served by the query API."""
        return {"timestamp": self.timestamp, "attributes": dict(self.attributes)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        """Build an event from its dictionary form."""
        return cls(
            timestamp=int(data["timestamp"]),
            attributes={str(k): str(v) for k, v in (data.get("attributes") or {}).items()},
        )
