#!/usr/bin/env python3
"""
Command-line interface for the journal watcher.
"""

import sys
import json
import click
import logging
from datetime import datetime
from rich.console import Console
from rich.table import Table
from rich.logging import RichHandler
from rich.markup import escape

from .config import get_settings, load_definitions
from .database.storage import EventStore
from .errors import ConfigError, WatcherError
from .api.models import serialize_results
from .query.service import QueryService
from .query.timestamps import resolve_range
from .runtime import WatcherService
from .streaming.pipeline import IngestionPipeline, PipelineStats
from .streaming.sources import JournalSource, StreamSource


# Set up rich console for pretty output
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)


def _load_definitions_or_exit(patterns_file):
    try:
        return load_definitions(patterns_file)
    except ConfigError as e:
        console.print(f"[red]Invalid event definitions:[/red] {escape(str(e))}")
        sys.exit(2)


def _open_store_or_exit(db_path):
    try:
        return EventStore.open(db_path)
    except WatcherError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose):
    """Journal Watcher - notable events from a service journal"""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.argument("patterns_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("unit")
@click.option("--port", "-p", type=int, default=None, help="The port to serve data on")
@click.option("--host", default=None, help="The interface to bind the server to")
@click.option(
    "--db-path",
    "-d",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the event database (default: ~/.journal-watcher/events.db)",
)
def watch(patterns_file, unit, port, host, db_path):
    """Follow the journal of UNIT and serve the events it matches."""
    settings = get_settings()
    if port is not None:
        settings.server.port = port
    if host is not None:
        settings.server.host = host
    if db_path is not None:
        settings.database.path = db_path

    try:
        settings.validate()
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(2)
    settings.log_configuration()

    definitions = _load_definitions_or_exit(patterns_file)
    store = _open_store_or_exit(settings.database.path)
    source = JournalSource(unit, journalctl=settings.source.journalctl)

    service = WatcherService(
        definitions,
        store,
        source,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level,
        query_lock_timeout=settings.server.query_lock_timeout,
    )

    try:
        stats = service.run()
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        service.stop()
        return
    except WatcherError as e:
        console.print(f"[red]Watcher stopped: {escape(str(e))}[/red]")
        sys.exit(1)
    finally:
        store.close()

    display_ingest_summary(stats)


@cli.command()
@click.argument("patterns_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("input_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--db-path",
    "-d",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the event database (default: ~/.journal-watcher/events.db)",
)
def ingest(patterns_file, input_file, db_path):
    """Run the pipeline over INPUT_FILE (or stdin) without serving."""
    definitions = _load_definitions_or_exit(patterns_file)
    store = _open_store_or_exit(db_path or get_settings().database.path)

    pipeline = IngestionPipeline(definitions, store)
    source = StreamSource(input_file, name=input_file.name)
    try:
        stats = pipeline.run(source)
    except WatcherError as e:
        console.print(f"[red]Ingestion failed: {escape(str(e))}[/red]")
        sys.exit(1)
    finally:
        store.close()

    display_ingest_summary(stats)


@cli.command()
@click.argument("patterns_file", type=click.Path(exists=True, dir_okay=False))
def check(patterns_file):
    """Validate an event definitions file."""
    definitions = _load_definitions_or_exit(patterns_file)

    table = Table(title=f"Event Definitions ({len(definitions)})")
    table.add_column("Event", style="green")
    table.add_column("Pattern", style="cyan")
    table.add_column("Attributes", style="white")

    for definition in definitions:
        attributes = ", ".join(
            f"{name}={pattern.pattern}" for name, pattern in definition.attribute_patterns.items()
        )
        table.add_row(
            escape(definition.name), escape(definition.line_pattern.pattern), escape(attributes) or "-"
        )

    console.print(table)
    console.print("[bold green]All patterns compiled successfully[/bold green]")


@cli.command()
@click.argument("patterns_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--start", default=None, help="Inclusive lower bound (epoch seconds or ISO 8601)")
@click.option("--end", default=None, help="Exclusive upper bound (epoch seconds or ISO 8601)")
@click.option(
    "--db-path",
    "-d",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to the event database (default: ~/.journal-watcher/events.db)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response")
def query(patterns_file, start, end, db_path, as_json):
    """Query stored events for every definition in PATTERNS_FILE."""
    definitions = _load_definitions_or_exit(patterns_file)
    store = _open_store_or_exit(db_path or get_settings().database.path)

    try:
        results = QueryService(definitions, store).handle(start, end)
    except WatcherError as e:
        console.print(f"[red]Query failed: {escape(str(e))}[/red]")
        sys.exit(1)
    finally:
        store.close()

    if as_json:
        click.echo(json.dumps(serialize_results(results), ensure_ascii=False, indent=2))
        return

    start_ts, end_ts = resolve_range(start, end)
    table = Table(title=escape(f"Events in [{start_ts}, {end_ts})"))
    table.add_column("Event", style="green")
    table.add_column("Time", style="cyan")
    table.add_column("Attributes", style="white")

    for name, events in results.items():
        if not events:
            table.add_row(escape(name), "[dim]-[/dim]", "[dim]no events[/dim]")
        for event in events:
            attributes = ", ".join(f"{k}={v}" for k, v in sorted(event.attributes.items()))
            table.add_row(escape(name), _format_time(event.timestamp), escape(attributes) or "-")

    console.print(table)


def _format_time(timestamp: int) -> str:
    try:
        return datetime.fromtimestamp(timestamp).isoformat(sep=" ")
    except (OverflowError, OSError, ValueError):
        return str(timestamp)


def display_ingest_summary(stats: PipelineStats):
    """Display summary of an ingestion run."""
    console.print("\n[bold cyan]═══ Ingestion Complete ═══[/bold cyan]")

    stats_table = Table(title="Ingestion Statistics", show_header=False)
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Value", style="white")

    stats_table.add_row("Lines Processed", f"{stats.lines_processed:,}")
    stats_table.add_row("Events Stored", f"{stats.events_stored:,}")
    stats_table.add_row("Processing Time", f"{stats.duration:.2f}s")
    console.print(stats_table)

    if stats.events_by_name:
        event_table = Table(title="\n[bold]Events by Definition[/bold]")
        event_table.add_column("Event", style="green")
        event_table.add_column("Count", style="white")
        for name, count in sorted(stats.events_by_name.items()):
            event_table.add_row(name, f"{count:,}")
        console.print(event_table)


def main():
    """Entry point for the journal-watcher command."""
    cli()


if __name__ == "__main__":
    main()
