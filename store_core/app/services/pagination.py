"""
Page slicing for list endpoints.

Page numbers are 1-based. Bad page/size input is never rejected: it is
clamped to the nearest valid value, and a page past the end is simply
empty while the totals still describe the whole result set.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    total_items: int
    page: int
    size: int
    total_pages: int
    has_next: bool
    has_previous: bool
    extra: Dict[str, Any] = field(default_factory=dict)


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def sanitize_page(page: Any) -> int:
    value = _as_int(page)
    if value is None or value <= 0:
        return DEFAULT_PAGE
    return value


def sanitize_size(size: Any) -> int:
    value = _as_int(size)
    if value is None or value <= 0:
        return DEFAULT_PAGE_SIZE
    return min(value, MAX_PAGE_SIZE)


def paginate(items: Optional[Sequence[T]], page: Any = DEFAULT_PAGE, size: Any = DEFAULT_PAGE_SIZE,
             extra: Optional[Dict[str, Any]] = None) -> Page[T]:
    safe_page = sanitize_page(page)
    safe_size = sanitize_size(size)
    items = list(items or ())
    total_items = len(items)
    total_pages = 1 if total_items == 0 else math.ceil(total_items / safe_size)

    start = (safe_page - 1) * safe_size
    end = min(safe_page * safe_size, total_items)
    page_items = items[start:end] if start < end else []

    return Page(
        items=page_items,
        total_items=total_items,
        page=safe_page,
        size=safe_size,
        total_pages=total_pages,
        has_next=safe_page < total_pages,
        has_previous=safe_page > 1,
        extra=dict(extra or {}),
    )
