"""
Streaming ingestion for the journal watcher.

Line sources feed the ingestion pipeline, which matches event definitions
and writes events to the event store.
"""

from .sources import LineSource, StreamSource, JournalSource
from .pipeline import IngestionPipeline, PipelineStats, wall_clock

__all__ = [
    "LineSource",
    "StreamSource",
    "JournalSource",
    "IngestionPipeline",
    "PipelineStats",
    "wall_clock",
]
