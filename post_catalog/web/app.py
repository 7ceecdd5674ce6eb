"""FastAPI application factory for the post catalog."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from post_catalog import __version__
from post_catalog.config import Settings, load_settings
from post_catalog.core.errors import QueryError
from post_catalog.db.engine import create_db_engine, create_session_factory, init_db
from post_catalog.db.repositories import PostStore
from post_catalog.db.search import QueryService
from post_catalog.ingestion.listener import TelegramListener
from post_catalog.ingestion.pipeline import IngestPipeline

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings, store: PostStore) -> IngestPipeline:
    """Create the ingest pipeline fed by the configured Telegram channel."""
    pipeline = IngestPipeline(
        store,
        capacity=settings.relay_capacity,
        write_timeout=settings.store_write_timeout,
    )
    pipeline.attach_listener(
        TelegramListener(pipeline.intake, settings.telegram_token, settings.telegram_chat_id)
    )
    return pipeline


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the ingest pipeline alongside the API when a channel is configured."""
    pipeline = app.state.pipeline
    if pipeline is not None:
        await pipeline.start()
    try:
        yield
    finally:
        if pipeline is not None:
            await pipeline.stop()
        app.state.engine.dispose()


async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    """Translate read failures into a 500 with the error message."""
    logger.error(f"Query failed for {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(settings: Settings | None = None, with_pipeline: bool | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if None.
        with_pipeline: Run the ingest pipeline in the app's lifespan.
            Defaults to whether a Telegram channel is configured.

    Raises:
        IndexCreationFailed: if the store cannot be initialized.
    """
    settings = settings or load_settings()
    if with_pipeline is None:
        with_pipeline = settings.listener_enabled

    app = FastAPI(
        title="Post Catalog",
        description="Structured records extracted from channel announcement posts",
        version=__version__,
        lifespan=lifespan,
    )

    # Initialize tables and indexes; failure aborts startup
    engine = create_db_engine(settings.database_url or None, timeout=settings.store_query_timeout)
    init_db(engine)
    session_factory = create_session_factory(engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.query_service = QueryService(session_factory)
    app.state.pipeline = build_pipeline(settings, PostStore(session_factory)) if with_pipeline else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )
    app.add_exception_handler(QueryError, query_error_handler)

    # Include routers (import here to avoid circular imports)
    from post_catalog.web.routes import posts

    app.include_router(posts.router)

    return app
