"""Query service: filtered, paginated reads and distinct-value listings."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from post_catalog.core.errors import StoreUnavailable
from post_catalog.core.schema import (
    FilterCriteria,
    PostsResponse,
    Record,
    is_language_code,
    normalize_tag,
)

logger = logging.getLogger(__name__)

# Trigram index needs at least three characters to match
MIN_FTS_QUERY_LENGTH = 3


@dataclass
class PostFilter:
    """SQL predicate over posts (aliased p) built from filter criteria."""

    conditions: list[str] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def where_clause(self) -> str:
        """All conditions joined with AND."""
        return " AND ".join(self.conditions) if self.conditions else "1=1"


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


def _build_fts_query(query: str) -> str:
    """Quote user input as a single FTS5 phrase."""
    escaped = query.replace('"', '""')
    return f'"{escaped}"'


def build_filter(criteria: FilterCriteria) -> PostFilter:
    """
    Translate filter criteria into a conjunctive SQL predicate.

    - free_text: case-insensitive substring of name
    - type: exact match
    - tag: a post tag equals the tag, with or without a leading '#'
    - language: a post tag ends with the given code
    """
    post_filter = PostFilter()
    conditions = post_filter.conditions
    params = post_filter.params

    free_text = _clean(criteria.free_text)
    if free_text:
        if len(free_text) >= MIN_FTS_QUERY_LENGTH:
            conditions.append(
                "p.id IN (SELECT rowid FROM posts_fts WHERE posts_fts MATCH :fts_query)"
            )
            params["fts_query"] = _build_fts_query(free_text)
        else:
            conditions.append("instr(casefold(p.name), casefold(:free_text)) > 0")
            params["free_text"] = free_text

    post_type = _clean(criteria.type)
    if post_type:
        conditions.append("p.type = :type")
        params["type"] = post_type

    tag = normalize_tag(criteria.tag or "")
    if tag:
        conditions.append(
            "EXISTS (SELECT 1 FROM post_tags pt WHERE pt.post_id = p.id"
            " AND pt.tag IN (:tag, :tag_marked))"
        )
        params["tag"] = tag
        params["tag_marked"] = f"#{tag}"

    language = _clean(criteria.language)
    if language:
        conditions.append(
            "EXISTS (SELECT 1 FROM post_tags pl WHERE pl.post_id = p.id"
            " AND length(pl.tag) >= length(:language)"
            " AND substr(pl.tag, -length(:language)) = :language)"
        )
        params["language"] = language

    return post_filter


class QueryService:
    """
    Read path over stored posts.

    Stateless: every call opens its own session, so one instance can be
    shared by concurrent request handlers.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def find(self, criteria: FilterCriteria | None = None) -> PostsResponse:
        """
        Return one page of posts matching the criteria.

        total_count is counted over the full match set, independent of
        the requested page.

        Raises:
            StoreUnavailable: if the store fails.
        """
        if criteria is None:
            criteria = FilterCriteria()

        post_filter = build_filter(criteria)
        where_clause = post_filter.where_clause

        sql = f"""
            SELECT p.name, p.type, p.tags_json, p.url
            FROM posts p
            WHERE {where_clause}
            ORDER BY p.id
            LIMIT :limit OFFSET :offset
        """
        count_sql = f"""
            SELECT COUNT(*)
            FROM posts p
            WHERE {where_clause}
        """
        params = {**post_filter.params, "limit": criteria.limit, "offset": criteria.skip}

        try:
            with self.session_factory() as session:
                rows = session.execute(text(sql), params).fetchall()
                total_count = session.execute(text(count_sql), post_filter.params).scalar() or 0
        except SQLAlchemyError as e:
            logger.error(f"Failed to query posts: {e}")
            raise StoreUnavailable(f"failed to query posts: {e}") from e

        posts = [
            Record(name=row[0], type=row[1], tags=json.loads(row[2]), url=row[3])
            for row in rows
        ]
        return PostsResponse(posts=posts, total_count=total_count)

    def list_tags(self) -> list[str]:
        """
        All distinct tags, without '#' markers, sorted ascending.

        Raises:
            StoreUnavailable: if the store fails.
        """
        rows = self._fetch_column("SELECT DISTINCT tag FROM post_tags", "tags")
        tags = {normalize_tag(tag) for tag in rows}
        tags.discard("")
        return sorted(tags)

    def list_languages(self) -> list[str]:
        """
        Distinct language codes, sorted ascending.

        Only the last tag of each post is considered, and only when it is
        exactly two lowercase letters.

        Raises:
            StoreUnavailable: if the store fails.
        """
        rows = self._fetch_column(
            """
            SELECT pt.tag
            FROM post_tags pt
            JOIN (
                SELECT post_id, MAX(position) AS last_position
                FROM post_tags
                GROUP BY post_id
            ) last ON pt.post_id = last.post_id AND pt.position = last.last_position
            """,
            "languages",
        )
        languages = {normalize_tag(tag) for tag in rows}
        return sorted(code for code in languages if is_language_code(code))

    def _fetch_column(self, sql: str, what: str) -> list[str]:
        try:
            with self.session_factory() as session:
                return [row[0] for row in session.execute(text(sql)).fetchall()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {what}: {e}")
            raise StoreUnavailable(f"failed to list {what}: {e}") from e
