"""
Range query service over all loaded event definitions.
"""

import logging
from typing import Dict, List, Optional, Sequence

from .timestamps import resolve_range
from ..database.storage import EventStore
from ..models.event import Event
from ..patterns.compiler import EventDefinition, sorted_by_name

logger = logging.getLogger(__name__)


class QueryService:
    """
    Answers time-range queries for every loaded event definition.

    Only the names of the currently loaded definitions are reported; other
    namespaces in the store are never surfaced.
    """

    def __init__(
        self,
        definitions: Sequence[EventDefinition],
        store: EventStore,
        lock_timeout: Optional[float] = None,
    ):
        """
        Initialize the query service.

        Args:
            definitions: Compiled event definitions
            store: Event store shared with the ingestion pipeline
            lock_timeout: Seconds to wait for store access per namespace
        """
        self.definitions = sorted_by_name(definitions)
        self.store = store
        self.lock_timeout = lock_timeout

    def query(self, start: int, end: int) -> Dict[str, List[Event]]:
        """
        Query every namespace for events with start <= timestamp < end.

        Returns:
            Event name to ascending list of events, in event-name order

        Raises:
            StorageError: If any range query fails
        """
        results: Dict[str, List[Event]] = {}
        for definition in self.definitions:
            results[definition.name] = self.store.range_query(
                definition.name, start, end, timeout=self.lock_timeout
            )
        logger.debug(
            f"Range query [{start}, {end}) returned "
            f"{sum(len(v) for v in results.values())} events"
        )
        return results

    def handle(self, start: Optional[str] = None, end: Optional[str] = None) -> Dict[str, List[Event]]:
        """
        Handle a query with textual, optional bounds.

        Unparseable or missing bounds default to 0 and the maximum timestamp.
        """
        start_ts, end_ts = resolve_range(start, end)
        return self.query(start_ts, end_ts)
