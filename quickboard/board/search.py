"""Card search filter."""

from __future__ import annotations

from collections.abc import Iterable

from .model import Item


def is_filter_active(query: str | None) -> bool:
    """Any non-empty query counts, including whitespace."""
    return bool(query)


def matches(item: Item, query: str | None) -> bool:
    """Case-insensitive substring match on title, content or tag."""
    if not query:
        return True
    needle = query.lower()
    return (
        needle in item.title.lower()
        or needle in item.content.lower()
        or needle in item.tag.value.lower()
    )


def filter_items(items: Iterable[Item], query: str | None) -> list[Item]:
    return [item for item in items if matches(item, query)]
