"""
Process runtime for the watcher.

Runs the ingestion pipeline and the query server as two long-lived threads
sharing one event store. Ingestion ending (end of stream or failure) shuts
the server down; a failed server stops ingestion.
"""

import logging
import threading
from typing import Optional, Sequence

import uvicorn

from .api.app import create_app
from .database.storage import EventStore
from .errors import WatcherError
from .patterns.compiler import EventDefinition
from .query.service import QueryService
from .streaming.pipeline import IngestionPipeline, PipelineStats
from .streaming.sources import LineSource

logger = logging.getLogger(__name__)


class WatcherService:
    """Coordinates the ingestion and query server threads."""

    JOIN_TIMEOUT = 10.0
    POLL_INTERVAL = 0.5

    def __init__(
        self,
        definitions: Sequence[EventDefinition],
        store: EventStore,
        source: LineSource,
        host: str = "localhost",
        port: int = 6767,
        log_level: str = "info",
        query_lock_timeout: Optional[float] = None,
    ):
        self.store = store
        self.source = source
        self.pipeline = IngestionPipeline(definitions, store)
        self.query_service = QueryService(definitions, store, lock_timeout=query_lock_timeout)

        config = uvicorn.Config(
            create_app(self.query_service),
            host=host,
            port=port,
            log_level=log_level,
            access_log=True,
        )
        self.server = uvicorn.Server(config)

        self._ingest_thread = threading.Thread(target=self._ingest, name="ingestion", daemon=True)
        self._server_thread = threading.Thread(target=self._serve, name="query-server", daemon=True)
        self._ingest_done = threading.Event()
        self._failure: Optional[BaseException] = None
        self._stopping = False

    def _ingest(self):
        try:
            self.pipeline.run(self.source)
        except Exception as e:
            logger.error(f"Ingestion failed: {e}")
            self._failure = e
        finally:
            self._ingest_done.set()

    def _serve(self):
        logger.info(f"Serving events on http://{self.server.config.host}:{self.server.config.port}/")
        self.server.run()

    def start(self):
        """Start both threads."""
        self._server_thread.start()
        self._ingest_thread.start()
        logger.info("Watcher started")

    def stop(self):
        """Signal both loops to stop."""
        if self._stopping:
            return
        self._stopping = True
        logger.info("Stopping watcher")
        self.pipeline.stop()
        self.source.close()
        self.server.should_exit = True

    def wait(self) -> PipelineStats:
        """
        Block until ingestion ends, then shut everything down.

        Returns:
            Statistics of the ingestion run

        Raises:
            WatcherError: If ingestion failed or the server exited unexpectedly
        """
        try:
            while not self._ingest_done.wait(timeout=self.POLL_INTERVAL):
                if not self._server_thread.is_alive() and not self._stopping:
                    self._failure = WatcherError("Query server exited unexpectedly")
                    break
        finally:
            self.stop()
            self._ingest_thread.join(timeout=self.JOIN_TIMEOUT)
            self._server_thread.join(timeout=self.JOIN_TIMEOUT)
            logger.info("Watcher stopped")

        if self._failure is not None:
            raise self._failure
        return self.pipeline.stats

    def run(self) -> PipelineStats:
        """Start and wait."""
        self.start()
        return self.wait()
