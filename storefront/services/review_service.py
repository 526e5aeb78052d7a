"""
Paginated product reviews with rating statistics.

Statistics always cover every review of the product; the rating filter only
narrows the page of reviews and its pagination total.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import InvalidFilter, StoreUnavailable
from storefront.database.models import Review
from storefront.services.pagination import PageMeta, paginate
from storefront.services.rating_aggregator import compute_stats

logger = logging.getLogger(__name__)

RATING_VALUES = (5, 4, 3, 2, 1)


class ReviewSort(str, Enum):
    newest = "newest"
    oldest = "oldest"
    highest = "highest"
    lowest = "lowest"


# Equal ratings fall back to newest first
_ORDERINGS = {
    ReviewSort.newest: (Review.created_at.desc(), Review.id.desc()),
    ReviewSort.oldest: (Review.created_at.asc(), Review.id.asc()),
    ReviewSort.highest: (Review.rating.desc(), Review.created_at.desc(), Review.id.desc()),
    ReviewSort.lowest: (Review.rating.asc(), Review.created_at.desc(), Review.id.desc()),
}


@dataclass(frozen=True)
class RatingBucket:
    rating: int
    count: int
    percentage: float


@dataclass(frozen=True)
class ReviewStats:
    average_rating: float
    total_reviews: int
    distribution: List[RatingBucket]


@dataclass
class ReviewPage:
    reviews: List[Review]
    page: PageMeta
    stats: ReviewStats


def parse_review_sort(raw: Optional[str]) -> ReviewSort:
    """Sort mode from the query string; unknown values mean newest"""
    value = (raw or "").strip().lower()
    try:
        return ReviewSort(value)
    except ValueError:
        if value:
            logger.debug(f"Unknown review sort '{raw}', using newest")
        return ReviewSort.newest


def parse_rating_filter(raw: Any) -> Optional[int]:
    """Exact star rating to keep; empty or "all" keeps every rating.

    Raises:
        InvalidFilter: when the value is not an integer from 1 to 5.
    """
    if raw is None:
        return None
    text = str(raw).strip().lower()
    if not text or text == "all":
        return None
    try:
        rating = int(text)
    except ValueError:
        raise InvalidFilter("rating", raw, "must be an integer from 1 to 5")
    if rating not in RATING_VALUES:
        raise InvalidFilter("rating", raw, "must be an integer from 1 to 5")
    return rating


def summarize_ratings(counts: Dict[int, int]) -> ReviewStats:
    """Average, total and a 5-to-1 star distribution from per-rating counts.

    >>> summarize_ratings({5: 2, 4: 1, 3: 1}).average_rating
    4.3
    """
    total = sum(counts.values())
    stats = compute_stats(rating for rating, count in counts.items() for _ in range(count))
    distribution = [
        RatingBucket(
            rating=rating,
            count=counts.get(rating, 0),
            percentage=round(counts.get(rating, 0) * 100 / total, 1) if total else 0.0,
        )
        for rating in RATING_VALUES
    ]
    return ReviewStats(average_rating=stats.average_rating, total_reviews=total, distribution=distribution)


async def list_reviews(
    db: AsyncSession,
    product_id: int,
    page: int = 1,
    limit: int = 10,
    sort: ReviewSort = ReviewSort.newest,
    rating: Optional[int] = None,
) -> ReviewPage:
    """One page of a product's reviews, with reviewer names loaded.

    An unknown product simply has no reviews.

    Raises:
        StoreUnavailable: if a query fails.
    """
    conditions = [Review.product_id == product_id]
    if rating is not None:
        conditions.append(Review.rating == rating)

    try:
        count_query = (
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id)
            .group_by(Review.rating)
        )
        counts = {value: count for value, count in (await db.execute(count_query)).all()}

        total = await db.scalar(select(func.count(Review.id)).where(*conditions))
        window = paginate(total or 0, page, limit)

        page_query = (
            select(Review)
            .options(selectinload(Review.user))
            .where(*conditions)
            .order_by(*_ORDERINGS[sort])
            .offset(window.offset)
            .limit(window.limit)
        )
        reviews = list((await db.execute(page_query)).scalars().all())
    except SQLAlchemyError as e:
        logger.error(f"Error fetching reviews for product {product_id}: {e}", exc_info=True)
        raise StoreUnavailable("reviews", e) from e

    logger.info(
        f"Fetched {len(reviews)} of {window.meta.total} reviews for product {product_id} "
        f"(page={page}, sort={sort.value}, rating={rating})"
    )
    return ReviewPage(reviews=reviews, page=window.meta, stats=summarize_ratings(counts))
