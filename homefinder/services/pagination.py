"""Pagination arithmetic for listing pages."""

import math
from typing import NamedTuple, Optional


class PageWindow(NamedTuple):
    """A 1-based page number and a page size."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for ``total`` items; 0 when there are none."""
    if total <= 0 or page_size <= 0:
        return 0
    return math.ceil(total / page_size)


def _positive_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 1 else None


def parse_window(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int,
    max_limit: int,
) -> PageWindow:
    """
    Build a page window from raw query parameters.

    Malformed or non-positive values fall back to page 1 and the default
    page size; oversized limits are clamped to ``max_limit``.
    """
    page_number = _positive_int(page) or 1
    page_size = min(_positive_int(limit) or default_limit, max_limit)
    return PageWindow(page=page_number, limit=page_size)
