"""
View derivation: filter, sort and paginate the catalog held in memory.

Everything here is pure. `recompute` is the single step that turns the
authoritative records plus the view parameters of a CatalogState into the
visible slice and pagination metadata; the reducer calls it after every
transition that touches either.

Order matters: filter first, then sort, then paginate, so that counts and
page offsets refer to the filtered sequence.
"""

from __future__ import annotations

import locale
import math
from dataclasses import dataclass, replace
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence, Tuple

from song_catalog.api.schemas import SongResponse

if TYPE_CHECKING:
    from song_catalog.client.state import CatalogState

Record = SongResponse

SEARCH_FIELDS = ("title", "artist", "album", "genre")
TEXT_SORT_FIELDS = ("title", "artist", "album", "genre", "duration")
NUMERIC_SORT_FIELDS = ("year",)
TIME_SORT_FIELDS = ("created_at", "updated_at")
SORTABLE_FIELDS = TEXT_SORT_FIELDS + NUMERIC_SORT_FIELDS + TIME_SORT_FIELDS

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class Pagination:
    current_page: int = 1
    items_per_page: int = 10
    total_items: int = 0
    total_pages: int = 1


# PUBLIC_INTERFACE
def filter_records(records: Sequence[Record], search_term: str) -> List[Record]:
    """Keep records whose title, artist, album or genre contains `search_term`, ignoring case."""
    if not search_term:
        return list(records)
    needle = search_term.lower()
    return [r for r in records if any(needle in getattr(r, f).lower() for f in SEARCH_FIELDS)]


def _compare_text(a: str, b: str) -> int:
    primary = locale.strcoll(a.casefold(), b.casefold())
    if primary:
        return primary
    return locale.strcoll(a, b)


def _compare_number(a: Any, b: Any) -> int:
    diff = a - b
    return (diff > 0) - (diff < 0)


def _comparator(field: str) -> Callable[[Record, Record], int]:
    if field in TEXT_SORT_FIELDS:
        compare = _compare_text
    elif field in NUMERIC_SORT_FIELDS:
        compare = _compare_number
    elif field in TIME_SORT_FIELDS:
        def compare(a, b):
            return (a > b) - (a < b)
    else:
        raise ValueError(f"Unknown sort field: {field!r}")
    return lambda x, y: compare(getattr(x, field), getattr(y, field))


# PUBLIC_INTERFACE
def sort_records(records: Sequence[Record], field: Optional[str], direction: str = ASC) -> List[Record]:
    """
    Stable sort of `records` by `field`.

    Descending negates the comparison, so records with equal keys keep their
    input order in both directions. A `field` of None preserves input order.
    """
    if field is None:
        return list(records)
    compare = _comparator(field)
    if direction == DESC:
        return sorted(records, key=cmp_to_key(lambda x, y: -compare(x, y)))
    return sorted(records, key=cmp_to_key(compare))


# PUBLIC_INTERFACE
def total_pages_for(total_items: int, items_per_page: int) -> int:
    """Number of pages for `total_items`; an empty collection still has one page."""
    return max(1, math.ceil(total_items / items_per_page))


# PUBLIC_INTERFACE
def paginate(records: Sequence[Record], current_page: int, items_per_page: int) -> Tuple[List[Record], Pagination]:
    """Slice out `current_page` (1-based). Pages past the end yield an empty slice."""
    total_items = len(records)
    start = max(0, (current_page - 1) * items_per_page)
    page = list(records[start : start + items_per_page])
    return page, Pagination(
        current_page=current_page,
        items_per_page=items_per_page,
        total_items=total_items,
        total_pages=total_pages_for(total_items, items_per_page),
    )


# PUBLIC_INTERFACE
def recompute(state: "CatalogState") -> "CatalogState":
    """Derive the visible slice and pagination metadata from `state`'s records and view parameters."""
    filtered = filter_records(state.all_records, state.search_term)
    ordered = sort_records(filtered, state.sort_field, state.sort_direction)
    visible, pagination = paginate(ordered, state.pagination.current_page, state.pagination.items_per_page)
    return replace(state, visible_slice=tuple(visible), pagination=pagination)


# PUBLIC_INTERFACE
def page_window(pagination: Pagination, size: int = 10) -> List[int]:
    """
    Page numbers to offer as direct links: at most `size` pages, starting a
    little before the current page once there are more pages than fit.
    """
    if pagination.total_pages <= size:
        return list(range(1, pagination.total_pages + 1))
    start = max(1, pagination.current_page - size // 2)
    end = min(pagination.total_pages, start + size - 1)
    return list(range(start, end + 1))


# PUBLIC_INTERFACE
def display_range(pagination: Pagination, shown: int) -> Tuple[int, int, int]:
    """(first, last, total) item numbers for a "Showing first to last of total" caption."""
    if shown == 0:
        return 0, 0, pagination.total_items
    first = (pagination.current_page - 1) * pagination.items_per_page + 1
    last = min(pagination.current_page * pagination.items_per_page, pagination.total_items)
    return first, last, pagination.total_items
