"""FastAPI dependencies shared by the routes."""

from typing import Annotated

from fastapi import Depends, Request

from post_catalog.db.search import QueryService
from post_catalog.ingestion.pipeline import IngestPipeline


def get_query_service(request: Request) -> QueryService:
    """Dependency returning the app-wide query service."""
    return request.app.state.query_service


def get_pipeline(request: Request) -> IngestPipeline | None:
    """Dependency returning the ingest pipeline, if the app runs one."""
    return request.app.state.pipeline


# Type aliases for dependency injection
QueryServiceDep = Annotated[QueryService, Depends(get_query_service)]
PipelineDep = Annotated[IngestPipeline | None, Depends(get_pipeline)]
