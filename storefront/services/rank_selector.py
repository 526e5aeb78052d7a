"""
Rank selector: chooses how search results are ordered.

price, name and createdAt are plain columns and are ordered by the database.
popularity and rating depend on aggregates, so those orderings are applied
in Python after the aggregates are computed. Every ordering ends with
ascending product id so equal keys paginate deterministically.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from storefront.core.exceptions import InvalidFilter
from storefront.database.models import Product
from storefront.services.rating_aggregator import ProductEntry


class SortKey(str, Enum):
    """Available sort fields"""

    price = "price"
    name = "name"
    created_at = "createdAt"
    popularity = "popularity"
    rating = "rating"
    relevance = "relevance"


class SortDirection(str, Enum):
    """Sort directions"""

    asc = "asc"
    desc = "desc"


_COLUMNS = {
    SortKey.price: Product.price,
    SortKey.name: Product.name,
    SortKey.created_at: Product.created_at,
}

_POST_FETCH_KEYS: Dict[SortKey, Callable[[ProductEntry], Any]] = {
    SortKey.popularity: lambda entry: entry.order_count,
    SortKey.rating: lambda entry: entry.stats.average_rating,
}


@dataclass(frozen=True)
class SortSpec:
    """Resolved ordering for a search request"""

    key: SortKey
    direction: SortDirection
    order_by: Tuple[Any, ...] = ()

    @property
    def post_fetch(self) -> bool:
        return self.key in _POST_FETCH_KEYS

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.desc

    def sort_entries(self, entries: Sequence[ProductEntry]) -> List[ProductEntry]:
        """Order aggregated entries for post-fetch keys.

        Entries are first ordered by id, then stably by the primary key;
        Python's sort keeps equal items in place even with reverse=True.
        """
        if not self.post_fetch:
            return list(entries)
        by_id = sorted(entries, key=lambda entry: entry.id)
        return sorted(by_id, key=_POST_FETCH_KEYS[self.key], reverse=self.descending)


def _parse_enum(enum_cls, name: str, raw: Optional[str], default):
    if raw is None or not raw.strip():
        return default
    try:
        return enum_cls(raw.strip())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidFilter(name, raw, f"must be one of {allowed}")


def select_rank(
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    has_text: bool = False,
    default_key: SortKey = SortKey.relevance,
) -> SortSpec:
    """Resolve sortBy/sortOrder into a SortSpec.

    Raises:
        InvalidFilter: for an unknown sort key or direction.
    """
    key = _parse_enum(SortKey, "sortBy", sort_by, default_key)
    direction = _parse_enum(SortDirection, "sortOrder", sort_order, SortDirection.desc)

    if key is SortKey.relevance:
        if has_text:
            # featured first, then newest
            order_by = (Product.is_featured.desc(), Product.created_at.desc(), Product.id.asc())
            return SortSpec(key=key, direction=SortDirection.desc, order_by=order_by)
        # without a text query relevance is plain recency
        return SortSpec(
            key=SortKey.created_at,
            direction=SortDirection.desc,
            order_by=(Product.created_at.desc(), Product.id.asc()),
        )

    if key in _POST_FETCH_KEYS:
        return SortSpec(key=key, direction=direction, order_by=(Product.id.asc(),))

    column = _COLUMNS[key]
    primary = column.desc() if direction is SortDirection.desc else column.asc()
    return SortSpec(key=key, direction=direction, order_by=(primary, Product.id.asc()))
