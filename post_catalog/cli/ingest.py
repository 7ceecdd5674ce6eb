"""
Ingestion CLI Commands
======================

CLI commands for running and inspecting the ingest pipeline.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from post_catalog.config import load_settings
from post_catalog.core.errors import ConfigError, ParseError, QueryError
from post_catalog.core.schema import RawEvent
from post_catalog.db.engine import create_db_engine, create_session_factory, init_db
from post_catalog.db.repositories import PostStore
from post_catalog.db.search import QueryService
from post_catalog.ingestion.parser import parse

console = Console()
ingest_app = typer.Typer(help="Ingest pipeline commands")


@ingest_app.command("parse")
def parse_file(
    path: Path = typer.Argument(..., help="Text file holding one post"),
    url: str = typer.Option("", "--url", "-u", help="Link attached to the post"),
) -> None:
    """
    Dry-run the parser on a post without storing it.

    Examples:
        post-catalog ingest parse post.txt --url https://example.com
    """
    if not path.exists():
        rprint(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)

    event = RawEvent(text=path.read_text(), url=url, origin_id=0)
    try:
        record = parse(event)
    except ParseError as e:
        rprint(f"[red]Rejected:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Parsed Record")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Name", record.name)
    table.add_row("Type", record.type)
    table.add_row("Tags", ", ".join(record.tags))
    table.add_row("URL", record.url)
    console.print(table)


@ingest_app.command("listen")
def listen() -> None:
    """
    Run only the ingest pipeline, without the read API.

    Requires TELEGRAM_TOKEN and TELEGRAM_CHAT_ID.
    """
    from post_catalog.cli.main import configure_logging
    from post_catalog.web.app import build_pipeline

    try:
        settings = load_settings()
        settings.validate()
    except ConfigError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    configure_logging(settings.log_level)
    engine = create_db_engine(settings.database_url or None, timeout=settings.store_query_timeout)
    init_db(engine)
    store = PostStore(create_session_factory(engine))

    async def _run() -> None:
        pipeline = build_pipeline(settings, store)
        await pipeline.start()
        try:
            await asyncio.Event().wait()
        finally:
            await pipeline.stop()
            _display_stats(pipeline.stats())

    rprint(f"[bold]Listening to channel {settings.telegram_chat_id}[/bold]")
    rprint("Press Ctrl+C to stop\n")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        rprint("\nShutting down gracefully...")
    finally:
        engine.dispose()


@ingest_app.command("stats")
def show_stats() -> None:
    """Show the tags and language codes currently in the store."""
    settings = load_settings()
    engine = create_db_engine(settings.database_url or None, timeout=settings.store_query_timeout)
    service = QueryService(create_session_factory(engine))

    try:
        total = service.find().total_count
        tags = service.list_tags()
        languages = service.list_languages()
    except QueryError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    finally:
        engine.dispose()

    rprint(f"\n[bold]Posts:[/bold] {total}")
    rprint(f"[bold]Languages:[/bold] {', '.join(languages) or '-'}")
    rprint(f"[bold]Tags ({len(tags)}):[/bold] {', '.join(tags) or '-'}")


def _display_stats(stats: dict) -> None:
    """Display pipeline counters in a table."""
    table = Table(title="Ingest Pipeline")
    table.add_column("Stage", style="bold")
    table.add_column("Counters")

    for stage, counters in stats.items():
        table.add_row(stage, "  ".join(f"{k}={v}" for k, v in counters.items()))

    console.print(table)
