"""Tests for Pydantic schema models."""

import pytest
from pydantic import ValidationError

from post_catalog.core.schema import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    FilterCriteria,
    PostsResponse,
    RawEvent,
    Record,
    is_language_code,
    normalize_tag,
)


class TestNormalizeTag:
    """Tests for normalize_tag."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("go", "go"),
            ("#go", "go"),
            ("  #go  ", "go"),
            ("##go", "#go"),
            ("# go", "go"),
            ("#", ""),
            ("   ", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        """Test trimming and single-marker removal."""
        assert normalize_tag(raw) == expected

    def test_idempotent(self) -> None:
        """Test normalizing a normalized tag is a no-op."""
        assert normalize_tag(normalize_tag(" #web ")) == "web"


class TestIsLanguageCode:
    """Tests for the language code convention."""

    @pytest.mark.parametrize("tag", ["en", "de", "us"])
    def test_accepted(self, tag: str) -> None:
        assert is_language_code(tag)

    @pytest.mark.parametrize("tag", ["EN", "eng", "e", "e1", "", "en "])
    def test_rejected(self, tag: str) -> None:
        assert not is_language_code(tag)


class TestRecord:
    """Tests for the Record model."""

    def test_valid(self) -> None:
        """Test a complete record."""
        record = Record(name="Foo", type="Library", tags=["go"], url="http://x")
        assert record.tags == ["go"]

    @pytest.mark.parametrize("field", ["name", "type", "url"])
    def test_blank_fields_rejected(self, field: str) -> None:
        """Test blank text fields fail validation."""
        data = {"name": "Foo", "type": "Library", "tags": ["go"], "url": "http://x"}
        data[field] = "  "
        with pytest.raises(ValidationError):
            Record(**data)

    def test_empty_tags_rejected(self) -> None:
        """Test a record needs at least one tag."""
        with pytest.raises(ValidationError):
            Record(name="Foo", type="Library", tags=[], url="http://x")

    def test_serialization(self) -> None:
        """Test JSON output uses the four public field names."""
        record = Record(name="Foo", type="Library", tags=["go", "en"], url="http://x")
        assert record.model_dump() == {
            "name": "Foo",
            "type": "Library",
            "tags": ["go", "en"],
            "url": "http://x",
        }


class TestRawEvent:
    """Tests for the RawEvent model."""

    def test_frozen(self) -> None:
        """Test events cannot be modified in flight."""
        event = RawEvent(text="Name: Foo", url="http://x", origin_id=1)
        with pytest.raises(ValidationError):
            event.text = "changed"

    def test_url_defaults_empty(self) -> None:
        assert RawEvent(text="x", origin_id=1).url == ""


class TestFilterCriteria:
    """Tests for FilterCriteria paging coercion."""

    def test_defaults(self) -> None:
        """Test page 1 and limit 10 by default."""
        criteria = FilterCriteria()
        assert (criteria.page, criteria.limit) == (DEFAULT_PAGE, DEFAULT_LIMIT) == (1, 10)
        assert criteria.skip == 0

    @pytest.mark.parametrize("value", ["", "abc", "0", "-3", 0, -1, None, "1.5"])
    def test_invalid_paging_uses_defaults(self, value) -> None:
        """Test unparseable and non-positive values fall back to defaults."""
        criteria = FilterCriteria(page=value, limit=value)
        assert criteria.page == 1
        assert criteria.limit == 10

    def test_numeric_strings_accepted(self) -> None:
        """Test query-string numbers are parsed."""
        criteria = FilterCriteria(page="3", limit="25")
        assert criteria.page == 3
        assert criteria.limit == 25

    def test_skip(self) -> None:
        """Test skip is (page - 1) * limit."""
        assert FilterCriteria(page=2, limit=10).skip == 10
        assert FilterCriteria(page=4, limit=7).skip == 21


class TestPostsResponse:
    """Tests for PostsResponse."""

    def test_empty(self) -> None:
        """Test an empty response serializes posts as a list."""
        assert PostsResponse().model_dump() == {"posts": [], "total_count": 0}
