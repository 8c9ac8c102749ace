"""
Pagination helpers.

Malformed pagination input never fails a request: non-numeric values fall
back to the defaults and numeric values are clamped into range. A page
number whose offset would overflow the store's OFFSET counts as malformed.
"""

from dataclasses import dataclass
from math import ceil, isfinite

from blogapi.configs.settings import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE, MAX_PAGE_SIZE


def coerce_int(value: object) -> int | None:
    """
    Interpret ``value`` as an integer the way a query string would be read.

    ``"3"``, ``3`` and ``"3.7"`` all give ``3``; anything that is not a
    finite number gives ``None``.

    Args:
        value: Raw value (int, float, str or None).

    Returns:
        The integer value, or None if it is not numeric.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not isfinite(number):
        return None
    return int(number)


def normalize_page(value: object) -> int:
    """
    Return a page number >= 1, defaulting to the first page.

    Pages too large for the store to skip to also give the first page.
    """
    page = coerce_int(value)
    if page is None or not 1 <= page <= MAX_PAGE:
        return DEFAULT_PAGE
    return page


def normalize_limit(value: object) -> int:
    """Return a page size in ``[1, MAX_PAGE_SIZE]``; zero or junk gives the default."""
    limit = coerce_int(value)
    if not limit:
        return DEFAULT_PAGE_SIZE
    return min(max(1, limit), MAX_PAGE_SIZE)


@dataclass(frozen=True, slots=True)
class PageParams:
    """Normalized page/limit pair."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_raw(cls, page: object = None, limit: object = None) -> "PageParams":
        return cls(page=normalize_page(page), limit=normalize_limit(limit))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class Page[ItemT]:
    """One page of results plus the totals used to render pagination."""

    items: list[ItemT]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0
