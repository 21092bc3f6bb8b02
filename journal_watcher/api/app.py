"""
FastAPI application serving time-range queries.

Exposes a single read-only endpoint:

    GET /?start=<timestamp>&end=<timestamp>

returning a pretty-printed JSON object mapping each loaded event name to the
events stored for it within [start, end).
"""

import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .models import serialize_results
from ..errors import StorageError
from ..query.service import QueryService

logger = logging.getLogger(__name__)


class PrettyJSONResponse(JSONResponse):
    """JSON response rendered with indentation."""

    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, indent=2).encode("utf-8")


def create_app(service: QueryService) -> FastAPI:
    """
    Create the query API application.

    Args:
        service: Query service bound to the shared event store

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Journal Watcher",
        description="Time-range queries over notable events extracted from a service journal.",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.query_service = service

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Query failed for {request.url}: {exc}")
        return PrettyJSONResponse(status_code=500, content={"detail": "Event store unavailable"})

    # Sync endpoint so concurrent requests run in the threadpool
    @app.get("/", response_class=PrettyJSONResponse)
    def query_events(
        start: Optional[str] = Query(None, description="Inclusive lower bound"),
        end: Optional[str] = Query(None, description="Exclusive upper bound"),
    ):
        """Return events of every loaded definition within [start, end)."""
        results = service.handle(start, end)
        return PrettyJSONResponse(content=serialize_results(results))

    return app
