"""
Offset/limit pagination and page metadata.
"""
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from storefront.core.config import settings
from storefront.core.exceptions import InvalidPagination


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


@dataclass(frozen=True)
class PageWindow:
    """Slice bounds for one page plus its metadata"""

    offset: int
    limit: int
    meta: PageMeta

    def slice(self, items: Sequence[Any]) -> list:
        return list(items[self.offset:self.offset + self.limit])


def _parse_positive_int(name: str, raw: Any, default: int) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return default
    if isinstance(raw, bool):
        raise InvalidPagination(name, raw)
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise InvalidPagination(name, raw)
    if value <= 0:
        raise InvalidPagination(name, raw)
    return value


def parse_page_params(
    page: Any = None,
    limit: Any = None,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None,
) -> Tuple[int, int]:
    """Validate page and limit.

    Missing values take defaults; a limit above the maximum is clamped.

    Raises:
        InvalidPagination: when page or limit is not a positive integer.
    """
    default_limit = default_limit or settings.default_page_size
    max_limit = max_limit or settings.max_page_size

    page_value = _parse_positive_int("page", page, 1)
    limit_value = _parse_positive_int("limit", limit, default_limit)
    return page_value, min(limit_value, max_limit)


def paginate(total: int, page: int, limit: int) -> PageWindow:
    """Compute the offset and metadata for a page.

    A page past the end is valid: its slice is empty and has_next is False.
    """
    if limit <= 0:
        raise InvalidPagination("limit", limit)
    if page <= 0:
        raise InvalidPagination("page", page)

    total = max(total, 0)
    total_pages = math.ceil(total / limit)
    meta = PageMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
    return PageWindow(offset=(page - 1) * limit, limit=limit, meta=meta)
