"""
Filter compiler: turns search request parameters into a SQLAlchemy predicate.

Tags are stored as a comma-delimited string, so tag and text matching use
case-insensitive substring semantics only. The rating floor cannot be
expressed here because ratings are aggregated from reviews; it is carried on
the compiled filter and applied after aggregation.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, false, or_

from storefront.core.exceptions import InvalidFilter
from storefront.database.models import Category, Product

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0


@dataclass(frozen=True)
class FilterSpec:
    """Normalized search constraints. None / empty means no constraint."""

    text: Optional[str] = None
    category_slug: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating_floor: Optional[float] = None
    in_stock_only: bool = False
    tags: Tuple[str, ...] = ()

    @property
    def has_empty_price_range(self) -> bool:
        return self.price_min is not None and self.price_max is not None and self.price_min > self.price_max


@dataclass(frozen=True)
class CompiledFilter:
    """Storage predicate plus the deferred rating floor"""

    spec: FilterSpec
    conditions: Tuple[Any, ...] = field(default_factory=tuple)

    @property
    def predicate(self):
        return and_(*self.conditions)

    @property
    def rating_floor(self) -> Optional[float]:
        return self.spec.rating_floor

    @property
    def needs_rating_filter(self) -> bool:
        return self.spec.rating_floor is not None

    @property
    def empty(self) -> bool:
        """True when the predicate can match nothing"""
        return self.spec.has_empty_price_range


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_number(name: str, raw: Any) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            raise InvalidFilter(name, raw)

    if not math.isfinite(value):
        raise InvalidFilter(name, raw, "must be a finite number")
    return value


def parse_tags(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma list, dropping blanks and duplicates"""
    if not raw:
        return ()
    seen: List[str] = []
    for tag in raw.split(","):
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


def parse_filter_spec(
    q: Optional[str] = None,
    category: Optional[str] = None,
    price_min: Any = None,
    price_max: Any = None,
    rating: Any = None,
    in_stock: Optional[str] = None,
    tags: Optional[str] = None,
) -> FilterSpec:
    """Validate raw query-string values into a FilterSpec.

    Raises:
        InvalidFilter: for non-numeric, non-finite or out of range bounds.
    """
    min_value = _parse_number("priceMin", price_min)
    max_value = _parse_number("priceMax", price_max)
    rating_value = _parse_number("rating", rating)

    if min_value is not None and min_value < 0:
        raise InvalidFilter("priceMin", price_min, "must not be negative")
    if max_value is not None and max_value < 0:
        raise InvalidFilter("priceMax", price_max, "must not be negative")
    if rating_value is not None and not MIN_RATING <= rating_value <= MAX_RATING:
        raise InvalidFilter("rating", rating, f"must be between {MIN_RATING:g} and {MAX_RATING:g}")

    return FilterSpec(
        text=_clean(q),
        category_slug=_clean(category),
        price_min=min_value,
        price_max=max_value,
        rating_floor=rating_value,
        in_stock_only=(in_stock or "").strip().lower() == "true",
        tags=parse_tags(tags),
    )


def contains_pattern(value: str) -> str:
    """LIKE pattern matching value anywhere, with wildcards escaped"""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def text_condition(text: str):
    """Name, description, tags or category name contain the text"""
    pattern = contains_pattern(text)
    return or_(
        Product.name.ilike(pattern, escape="\\"),
        Product.description.ilike(pattern, escape="\\"),
        Product.tags.ilike(pattern, escape="\\"),
        Product.category.has(Category.name.ilike(pattern, escape="\\")),
    )


def tags_condition(tags: Tuple[str, ...]):
    """Any-of match: the tags column contains at least one of the tags"""
    return or_(*[Product.tags.ilike(contains_pattern(tag), escape="\\") for tag in tags])


def compile_filter(spec: FilterSpec) -> CompiledFilter:
    """Build the storage predicate for a FilterSpec. Only active products match."""
    conditions: List[Any] = [Product.is_active.is_(True)]

    if spec.has_empty_price_range:
        logger.info(f"Empty price range {spec.price_min} > {spec.price_max}, predicate is always false")
        conditions.append(false())
        return CompiledFilter(spec=spec, conditions=tuple(conditions))

    if spec.text:
        conditions.append(text_condition(spec.text))

    if spec.category_slug:
        conditions.append(Product.category.has(Category.slug == spec.category_slug))

    if spec.price_min is not None:
        conditions.append(Product.price >= spec.price_min)

    if spec.price_max is not None:
        conditions.append(Product.price <= spec.price_max)

    if spec.in_stock_only:
        conditions.append(Product.quantity > 0)

    if spec.tags:
        conditions.append(tags_condition(spec.tags))

    return CompiledFilter(spec=spec, conditions=tuple(conditions))
