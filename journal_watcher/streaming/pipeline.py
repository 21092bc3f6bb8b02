"""
Ingestion pipeline.

Applies every compiled event definition to every incoming line and stores one
event per matching definition. Lines are processed one at a time in arrival
order. Source and storage failures end the run; nothing is retried.
"""

import time
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..database.storage import EventStore
from ..models.event import Event
from ..patterns.compiler import EventDefinition

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock() -> int:
    """Current wall-clock time in whole seconds since epoch."""
    return int(time.time())


@dataclass
class PipelineStats:
    """Counters for one ingestion run."""

    lines_processed: int = 0
    events_stored: int = 0
    events_by_name: Dict[str, int] = field(default_factory=Counter)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    @property
    def duration(self) -> float:
        if self.started_at is None:
            return 0.0
        return (self.finished_at or time.time()) - self.started_at


class IngestionPipeline:
    """
    Turns a line stream into stored events.

    Every definition is evaluated against every line; a line matching several
    definitions yields one event in each of their namespaces. Events are
    stamped with the clock at match time, never with a time parsed from the
    line.
    """

    def __init__(
        self,
        definitions: Sequence[EventDefinition],
        store: EventStore,
        clock: Clock = wall_clock,
    ):
        """
        Initialize the pipeline.

        Args:
            definitions: Compiled event definitions
            store: Event store shared with the query service
            clock: Returns the current time in seconds since epoch
        """
        self.definitions = list(definitions)
        self.store = store
        self.clock = clock
        self.stats = PipelineStats()
        self._stop_requested = threading.Event()

    def process_line(self, line: str) -> List[Tuple[str, Event]]:
        """
        Match a single line and store the resulting events.

        Args:
            line: Line from the source

        Returns:
            (event name, event) for each stored event

        Raises:
            StorageError: If an insert fails
        """
        line = line.rstrip("\r\n")
        stored = []

        for definition in self.definitions:
            if not definition.matches(line):
                continue

            timestamp = self.clock()
            event = Event(timestamp=timestamp, attributes=definition.extract_attributes(line))
            self.store.insert(definition.name, timestamp, event)

            self.stats.events_stored += 1
            self.stats.events_by_name[definition.name] += 1
            logger.debug(f"Stored '{definition.name}' event at {timestamp}: {event.attributes}")
            stored.append((definition.name, event))

        self.stats.lines_processed += 1
        return stored

    def run(self, lines: Iterable[str]) -> PipelineStats:
        """
        Consume lines until end of stream or until stop() is called.

        Args:
            lines: Line source

        Returns:
            Statistics for the run

        Raises:
            SourceError: If the source fails
            StorageError: If an insert fails
        """
        self.stats.started_at = time.time()
        logger.info(f"Ingestion started with {len(self.definitions)} event definitions")

        try:
            for line in lines:
                self.process_line(line)
                if self._stop_requested.is_set():
                    logger.info("Ingestion stop requested")
                    break
        finally:
            self.stats.finished_at = time.time()
            logger.info(
                f"Ingestion finished: {self.stats.lines_processed:,} lines, "
                f"{self.stats.events_stored:,} events in {self.stats.duration:.2f}s"
            )

        return self.stats

    def stop(self):
        """Ask run() to return after the current line."""
        self._stop_requested.set()

    @property
    def stopped(self) -> bool:
        return self._stop_requested.is_set()
