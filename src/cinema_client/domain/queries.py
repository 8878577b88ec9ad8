"""Filter, sort and pagination operators over joined collections."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TypeVar

from cinema_client.domain.joins import Resolved, Unresolved

T = TypeVar("T")

MIN_SEARCH_LENGTH = 2
DEFAULT_PAGE_WINDOW = 10
ELLIPSIS = "..."


class SortKey(StrEnum):
    """Supported sort orders."""

    NAME = "name"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


_TIMESTAMP_FIELDS = {
    SortKey.CREATED_AT: "created_at",
    SortKey.UPDATED_AT: "updated_at",
}


@dataclass(frozen=True)
class Page:
    """One page of a collection plus the page links to render."""

    items: list
    page_number: int
    total_pages: int
    window: list[int | str]


def filter_by_text(items: Sequence[T], term: str, field: str) -> list[T]:
    """Case-insensitive substring filter on a text attribute.

    Terms shorter than two characters are treated as noise and the input is
    returned unchanged.
    """
    if len(term) < MIN_SEARCH_LENGTH:
        return list(items)
    needle = term.lower()
    return [item for item in items if needle in _text_of(item, field).lower()]


def _text_of(item: object, field: str) -> str:
    value = getattr(item, field, None)
    if isinstance(value, Resolved):
        value = value.value
    if value is None or isinstance(value, Unresolved):
        return ""
    return str(value)


def sort_items(items: Sequence[T], key: SortKey) -> list[T]:
    """Return a stably sorted copy of the items."""
    if key is SortKey.NAME:
        return sorted(items, key=lambda item: str(getattr(item, "name", "")).casefold())
    attribute = _TIMESTAMP_FIELDS[key]
    oldest = datetime.min.replace(tzinfo=UTC)
    # reverse=True keeps ties in their original order; missing timestamps sort last
    return sorted(
        items,
        key=lambda item: (
            getattr(item, attribute) is not None,
            getattr(item, attribute) or oldest,
        ),
        reverse=True,
    )


def page_count(total_items: int, page_size: int) -> int:
    """Return the number of pages needed for the items."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total_items / page_size)


def page_window(
    current: int, total_pages: int, size: int = DEFAULT_PAGE_WINDOW
) -> list[int | str]:
    """Return at most ``size`` page numbers around ``current`` with ellipses."""
    if total_pages <= 0:
        return []
    start = max(current - size // 2, 1)
    end = min(start + size - 1, total_pages)
    start = max(end - size + 1, 1)
    window: list[int | str] = list(range(start, end + 1))
    if start > 1:
        window.insert(0, ELLIPSIS)
    if end < total_pages:
        window.append(ELLIPSIS)
    return window


def paginate(
    items: Sequence[T],
    page_size: int,
    page_number: int,
    window: int = DEFAULT_PAGE_WINDOW,
) -> Page:
    """Slice one 1-indexed page, clamping the page number into range."""
    total_pages = page_count(len(items), page_size)
    current = min(max(page_number, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page_number=current,
        total_pages=total_pages,
        window=page_window(current, total_pages, window),
    )
