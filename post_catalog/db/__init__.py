"""Database initialization and persistence layer."""

from post_catalog.db.engine import (
    create_db_engine,
    create_session_factory,
    ensure_indexes,
    get_database_url,
    init_db,
)
from post_catalog.db.models import Base, PostDB, PostTagDB
from post_catalog.db.repositories import PostStore
from post_catalog.db.search import PostFilter, QueryService, build_filter

__all__ = [
    # Engine
    "create_db_engine",
    "create_session_factory",
    "ensure_indexes",
    "get_database_url",
    "init_db",
    # Models
    "Base",
    "PostDB",
    "PostTagDB",
    # Store
    "PostStore",
    "PostFilter",
    "QueryService",
    "build_filter",
]
