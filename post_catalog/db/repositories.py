"""Write side of the document store."""

import asyncio
import json
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from post_catalog.core.errors import StoreTimeout, WriteFailed
from post_catalog.core.schema import Record
from post_catalog.db.models import PostDB, PostTagDB

logger = logging.getLogger(__name__)

DEFAULT_WRITE_TIMEOUT = 5.0


class PostStore:
    """Persists records as one post row plus one row per tag."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    def save(self, record: Record) -> int:
        """
        Insert a record.

        No deduplication: saving the same record twice stores it twice.

        Args:
            record: The validated record.

        Returns:
            The id of the new post.

        Raises:
            WriteFailed: if the insert fails.
        """
        db_post = PostDB(
            name=record.name,
            type=record.type,
            url=record.url,
            tags_json=json.dumps(record.tags),
            tags=[PostTagDB(position=i, tag=tag) for i, tag in enumerate(record.tags)],
        )

        with self.session_factory() as session:
            try:
                session.add(db_post)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise WriteFailed(f"failed to save '{record.name}': {e}") from e
            return db_post.id

    async def asave(self, record: Record, timeout: float = DEFAULT_WRITE_TIMEOUT) -> int:
        """
        Insert a record from async code without blocking the event loop.

        The timeout bounds the wait, not the write: the worker thread
        cannot be cancelled, so an insert that outlives the timeout may
        still commit after StoreTimeout has been raised.

        Raises:
            WriteFailed: if the insert fails.
            StoreTimeout: if the insert exceeds timeout seconds.
        """
        try:
            return await asyncio.wait_for(asyncio.to_thread(self.save, record), timeout)
        except TimeoutError as e:
            raise StoreTimeout("save", timeout) from e
