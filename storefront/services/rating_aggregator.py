"""
Rating aggregation for catalog products.

Ratings are never stored on the product row; average and count are derived
from the product's reviews on every read.
"""
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import OrderItem, Product

logger = logging.getLogger(__name__)

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class ProductStats:
    """Derived review statistics for a single product"""

    average_rating: float = 0.0
    review_count: int = 0


@dataclass
class ProductEntry:
    """A product decorated with the aggregates computed for this request"""

    product: Product
    stats: ProductStats
    order_count: int = 0

    @property
    def id(self) -> int:
        return self.product.id


def compute_stats(ratings: Iterable[int]) -> ProductStats:
    """Average rating (one decimal, half-up) and review count.

    >>> compute_stats([5, 4, 5, 3])
    ProductStats(average_rating=4.3, review_count=4)
    """
    values = list(ratings)
    if not values:
        return ProductStats()

    mean = Decimal(sum(values)) / Decimal(len(values))
    rounded = mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP)
    return ProductStats(average_rating=float(rounded), review_count=len(values))


def stats_for_product(product: Product) -> ProductStats:
    """Stats from a product whose reviews relationship is already loaded"""
    return compute_stats(review.rating for review in product.reviews)


def decorate_products(
    products: Sequence[Product],
    order_counts: Optional[Dict[int, int]] = None,
) -> List[ProductEntry]:
    """Wrap products with their stats, keeping the input order"""
    order_counts = order_counts or {}
    return [
        ProductEntry(
            product=product,
            stats=stats_for_product(product),
            order_count=order_counts.get(product.id, 0),
        )
        for product in products
    ]


def meets_rating_floor(entry: ProductEntry, rating_floor: Optional[float]) -> bool:
    if rating_floor is None:
        return True
    return entry.stats.average_rating >= rating_floor


def apply_rating_floor(entries: Sequence[ProductEntry], rating_floor: Optional[float]) -> List[ProductEntry]:
    """Keep entries whose average rating is at least the floor"""
    if rating_floor is None:
        return list(entries)
    kept = [entry for entry in entries if meets_rating_floor(entry, rating_floor)]
    logger.debug(f"Rating floor {rating_floor} kept {len(kept)}/{len(entries)} products")
    return kept


async def fetch_order_counts(db: AsyncSession, product_ids: Sequence[int]) -> Dict[int, int]:
    """Number of order items per product, for a batch of product ids"""
    if not product_ids:
        return {}

    query = (
        select(OrderItem.product_id, func.count(OrderItem.id))
        .where(OrderItem.product_id.in_(list(product_ids)))
        .group_by(OrderItem.product_id)
    )
    result = await db.execute(query)
    return {product_id: count for product_id, count in result.all()}
