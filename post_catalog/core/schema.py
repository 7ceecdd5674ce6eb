"""Pydantic v2 models for ingested posts and read queries."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# A tag of exactly two lowercase letters is read as a language code
LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}$")


def normalize_tag(value: str) -> str:
    """Trim a tag and strip at most one leading '#' marker."""
    value = value.strip()
    if value.startswith("#"):
        value = value[1:]
    return value.strip()


def is_language_code(tag: str) -> bool:
    """Check whether a tag follows the two-letter language convention."""
    return LANGUAGE_PATTERN.match(tag) is not None


class RawEvent(BaseModel):
    """Unparsed post received from the channel."""

    model_config = ConfigDict(frozen=True)

    text: str
    url: str = ""
    origin_id: int


class Record(BaseModel):
    """Validated announcement ready for storage."""

    name: str
    type: str
    tags: list[str]
    url: str

    @field_validator("name", "type", "url")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def has_tags(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one tag is required")
        return value


class FilterCriteria(BaseModel):
    """Caller-supplied criteria for listing posts."""

    free_text: str | None = None
    tag: str | None = None
    type: str | None = None
    language: str | None = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, value: object) -> int:
        return _positive_or(value, DEFAULT_PAGE)

    @field_validator("limit", mode="before")
    @classmethod
    def default_limit(cls, value: object) -> int:
        return _positive_or(value, DEFAULT_LIMIT)

    @property
    def skip(self) -> int:
        """Number of matching posts before the requested page."""
        return (self.page - 1) * self.limit


class PostsResponse(BaseModel):
    """A page of posts plus the size of the full match set."""

    posts: list[Record] = Field(default_factory=list)
    total_count: int = 0


def _positive_or(value: object, default: int) -> int:
    """Coerce value to a positive int, falling back to default."""
    if value is None or value == "":
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default
