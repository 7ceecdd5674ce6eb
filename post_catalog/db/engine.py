"""SQLite database engine, session management and index setup."""

import logging
import os
from pathlib import Path

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from post_catalog.core.errors import IndexCreationFailed

logger = logging.getLogger(__name__)

# Default database path (can be overridden via environment variable)
DEFAULT_DB_PATH = Path.home() / ".post_catalog" / "posts.db"

# SQLite busy timeout, applied to every store call on the connection
DEFAULT_TIMEOUT = 10.0

# Secondary indexes: tag membership and full-text search on name.
# posts_fts uses the trigram tokenizer so MATCH does substring search.
INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS ix_post_tags_tag ON post_tags (tag)",
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS posts_fts USING fts5(
        name,
        content='posts',
        content_rowid='id',
        tokenize='trigram'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS posts_fts_insert
    AFTER INSERT ON posts
    BEGIN
        INSERT INTO posts_fts(rowid, name) VALUES (NEW.id, NEW.name);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS posts_fts_delete
    AFTER DELETE ON posts
    BEGIN
        INSERT INTO posts_fts(posts_fts, rowid, name) VALUES ('delete', OLD.id, OLD.name);
    END
    """,
)


def get_database_url(db_path: Path | str | None = None) -> str:
    """
    Get the SQLite database URL.

    Args:
        db_path: Optional path or sqlite URL. If None, uses
                 DATABASE_URL env var or default path.

    Returns:
        SQLite connection URL.
    """
    if db_path is not None:
        if str(db_path).startswith("sqlite"):
            return str(db_path)
        path = Path(db_path)
    elif os.environ.get("DATABASE_URL"):
        # Support full URL or just path
        url = os.environ["DATABASE_URL"]
        if url.startswith("sqlite"):
            return url
        path = Path(url)
    else:
        path = DEFAULT_DB_PATH

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite:///{path}"


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def _register_functions(dbapi_connection, connection_record) -> None:
    """Add SQL functions missing from SQLite; lower() only folds ASCII."""
    dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)


def create_db_engine(
    db_path: Path | str | None = None,
    echo: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
) -> Engine:
    """
    Create a SQLAlchemy engine for SQLite.

    Args:
        db_path: Optional path to the database file.
        echo: If True, log all SQL statements.
        timeout: Seconds a call waits on a locked database before failing.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    engine = create_engine(
        url,
        echo=echo,
        connect_args={
            "check_same_thread": False,  # Persister writes from a worker thread
            "timeout": timeout,
        },
    )
    event.listen(engine, "connect", _register_functions)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a session factory bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def ensure_indexes(engine: Engine) -> None:
    """
    Create the tag index and the full-text index on name.

    Idempotent; safe to run at every startup.

    Raises:
        IndexCreationFailed: if any statement fails.
    """
    try:
        with engine.begin() as conn:
            for statement in INDEX_STATEMENTS:
                conn.execute(text(statement))
    except SQLAlchemyError as e:
        raise IndexCreationFailed(f"failed to create indexes: {e}") from e

    logger.info("Indexes created on tags and name")


def init_db(engine: Engine) -> Engine:
    """
    Initialize the database: create tables, then indexes.

    Args:
        engine: Engine to initialize.

    Returns:
        The initialized engine.
    """
    from post_catalog.db.models import Base

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise IndexCreationFailed(f"failed to create tables: {e}") from e
    ensure_indexes(engine)
    return engine
