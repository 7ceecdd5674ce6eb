"""Read routes: posts, tags and languages."""

from typing import Any

from fastapi import APIRouter

from post_catalog.core.schema import FilterCriteria, PostsResponse
from post_catalog.web.dependencies import PipelineDep, QueryServiceDep

router = APIRouter(tags=["posts"])


@router.get("/posts", response_model=PostsResponse)
def list_posts(
    service: QueryServiceDep,
    search: str = "",
    tag: str = "",
    type: str = "",
    language: str = "",
    page: str = "",
    limit: str = "",
) -> PostsResponse:
    """
    List posts matching all supplied filters.

    Args:
        search: Case-insensitive substring of the post name.
        tag: Tag the post must carry ('#' optional).
        type: Exact post type.
        language: Language code the post must be tagged with.
        page: Page number (1-indexed, defaults to 1).
        limit: Posts per page (defaults to 10).
    """
    criteria = FilterCriteria(
        free_text=search or None,
        tag=tag or None,
        type=type or None,
        language=language or None,
        page=page,
        limit=limit,
    )
    return service.find(criteria)


@router.get("/tags")
def list_tags(service: QueryServiceDep) -> list[str]:
    """All distinct tags, sorted."""
    return service.list_tags()


@router.get("/languages")
def list_languages(service: QueryServiceDep) -> list[str]:
    """All distinct language codes, sorted."""
    return service.list_languages()


@router.get("/health")
def health(pipeline: PipelineDep) -> dict[str, Any]:
    """Liveness check, with ingest counters when the pipeline runs."""
    status: dict[str, Any] = {"status": "ok"}
    if pipeline is not None:
        status["pipeline"] = pipeline.stats()
    return status
