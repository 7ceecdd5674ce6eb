"""SQLAlchemy ORM models for stored posts."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class PostDB(Base):
    """
    Database model for a stored post.

    One row per ingested record. Tags are kept in order as JSON for
    reads and exploded into post_tags for tag filtering.
    """

    __tablename__ = "posts"

    # Integer key doubles as the rowid of the posts_fts index
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    tags_json: Mapped[str] = mapped_column(Text, default="[]")  # JSON array
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    tags: Mapped[list["PostTagDB"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="PostTagDB.position",
    )

    def __repr__(self) -> str:
        return f"<PostDB(id={self.id}, name='{self.name}', type='{self.type}')>"


class PostTagDB(Base):
    """
    Database model for one tag of a post.

    The tag column carries the multi-valued tag index (ix_post_tags_tag),
    created at startup by ensure_indexes.
    """

    __tablename__ = "post_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    tag: Mapped[str] = mapped_column(String(255), nullable=False)

    post: Mapped[PostDB] = relationship(back_populates="tags")

    def __repr__(self) -> str:
        return f"<PostTagDB(post_id={self.post_id}, position={self.position}, tag='{self.tag}')>"
