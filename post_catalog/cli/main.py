"""Post Catalog CLI using Typer."""

import logging

import typer
from rich.logging import RichHandler

from post_catalog import __version__
from post_catalog.cli.ingest import ingest_app
from post_catalog.config import load_env_file, load_settings
from post_catalog.core.errors import ConfigError

app = typer.Typer(
    name="post-catalog",
    help="Post Catalog - structured records from channel announcement posts",
    add_completion=False,
)
app.add_typer(ingest_app, name="ingest")


def configure_logging(level: str = "INFO") -> None:
    """Send all log records through rich at the given level."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )


@app.command()
def serve(
    host: str = typer.Option(None, "--host", "-h", help="Host to bind to (default: API_HOST)"),
    port: int = typer.Option(None, "--port", "-p", help="Port to bind to (default: API_PORT)"),
    no_pipeline: bool = typer.Option(
        False, "--no-pipeline", help="Serve reads only, without listening to the channel"
    ),
) -> None:
    """Start the read API and, when configured, the ingest pipeline."""
    import uvicorn

    from post_catalog.web.app import create_app

    settings = load_settings()
    configure_logging(settings.log_level)

    with_pipeline = settings.listener_enabled and not no_pipeline
    if with_pipeline:
        typer.echo(f"  Listening to channel {settings.telegram_chat_id}")
    else:
        typer.echo("  Ingest pipeline: disabled (set TELEGRAM_TOKEN and TELEGRAM_CHAT_ID to enable)")

    host = host or settings.api_host
    port = port or settings.api_port
    typer.echo(f"Starting Post Catalog on http://{host}:{port}")
    typer.echo("Press Ctrl+C to stop the server")

    uvicorn.run(create_app(settings, with_pipeline=with_pipeline), host=host, port=port, log_config=None)


@app.command()
def init_db() -> None:
    """Initialize the database (create tables and indexes)."""
    from post_catalog.db.engine import create_db_engine
    from post_catalog.db.engine import init_db as db_init

    settings = load_settings()
    typer.echo("Initializing database...")
    engine = create_db_engine(settings.database_url or None, timeout=settings.store_query_timeout)
    try:
        db_init(engine)
    finally:
        engine.dispose()
    typer.echo("Database initialized successfully!")


@app.command()
def version() -> None:
    """Show the Post Catalog version."""
    typer.echo(f"Post Catalog v{__version__}")


@app.command()
def check_config() -> None:
    """Check the current configuration status."""
    from post_catalog.db.engine import get_database_url

    typer.echo("Post Catalog Configuration")
    typer.echo("=" * 40)

    env_path = load_env_file()
    typer.echo(f"  .env file: {env_path or 'Not found'}")

    try:
        settings = load_settings()
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    try:
        settings.validate()
    except ConfigError as e:
        typer.echo(f"  Listener: Not configured ({e})")
    else:
        typer.echo(f"  Listener: channel {settings.telegram_chat_id}")

    typer.echo(f"  Database: {get_database_url(settings.database_url or None)}")
    typer.echo(f"  API: http://{settings.api_host}:{settings.api_port}")
    typer.echo(f"  Relay capacity: {settings.relay_capacity}")


if __name__ == "__main__":
    app()
