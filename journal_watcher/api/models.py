"""
Pydantic models for the query API.
"""

from typing import Dict, List
from pydantic import BaseModel, Field

from ..models.event import Event


class EventPayload(BaseModel):
    """A stored event as returned by the query endpoint."""

    timestamp: int = Field(..., ge=0, description="Seconds since epoch at match time")
    attributes: Dict[str, str] = Field(default_factory=dict, description="Extracted attributes")

    model_config = {
        "json_schema_extra": {
            "example": {
                "timestamp": 1700000000,
                "attributes": {"user": "alice", "address": "10.0.0.7, 22"},
            }
        }
    }

    @classmethod
    def from_event(cls, event: Event) -> "EventPayload":
        return cls(timestamp=event.timestamp, attributes=event.attributes)


def serialize_results(results: Dict[str, List[Event]]) -> Dict[str, List[dict]]:
    """Convert query results into the JSON response body."""
    return {
        name: [EventPayload.from_event(event).model_dump() for event in events]
        for name, events in results.items()
    }
