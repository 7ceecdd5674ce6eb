"""
Post Parser Module
==================

Turns the free text of a channel post into a structured record.

Posts are expected to carry "key: value" lines, for example:

    Name: Foo
    Type: Library
    Tags: #go #backend #us

The link is not parsed from the text; it arrives with the event.
"""

from __future__ import annotations

from post_catalog.core.errors import MissingField, MissingURL, NoValidTags
from post_catalog.core.schema import RawEvent, Record, normalize_tag

REQUIRED_FIELDS = ("name", "type", "tags")

# The earliest of these in a tags value splits the whole value
TAG_SEPARATORS = (" ", ",", ";", "|")


def build_field_map(text: str) -> dict[str, str]:
    """
    Collect "key: value" pairs from post text.

    Keys are lower-cased. Lines without a colon, or with an empty key or
    value, are skipped. A repeated key keeps its last value.
    """
    fields: dict[str, str] = {}

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue

        key, sep, value = line.partition(":")
        if not sep:
            continue

        key = key.strip().lower()
        value = value.strip()
        if key and value:
            fields[key] = value

    return fields


def split_tags(raw_tags: str) -> list[str]:
    """
    Split a raw tags value into normalized tags.

    Mixed separators are not supported: the value is split only on the
    first separator character that occurs in it, so "x; y; z" splits on
    ";" and "a b,c" splits on " ".
    """
    if not raw_tags:
        return []

    tokens = [raw_tags]
    for char in raw_tags:
        if char in TAG_SEPARATORS:
            tokens = raw_tags.split(char)
            break

    tags = []
    for token in tokens:
        tag = normalize_tag(token)
        if tag:
            tags.append(tag)
    return tags


def parse(event: RawEvent) -> Record:
    """
    Parse a raw event into a record.

    Raises:
        MissingField: a required key is absent or blank.
        MissingURL: the event carries no URL.
        NoValidTags: the tags value yields no tag.
    """
    fields = build_field_map(event.text)

    for key in REQUIRED_FIELDS:
        if not fields.get(key, "").strip():
            raise MissingField(key)

    if not event.url.strip():
        raise MissingURL()

    tags = split_tags(fields["tags"])
    if not tags:
        raise NoValidTags()

    return Record(
        name=fields["name"],
        type=fields["type"],
        tags=tags,
        url=event.url,
    )
