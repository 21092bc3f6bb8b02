"""HTTP query API."""

from .app import create_app, PrettyJSONResponse
from .models import EventPayload, serialize_results

__all__ = ["create_app", "PrettyJSONResponse", "EventPayload", "serialize_results"]
