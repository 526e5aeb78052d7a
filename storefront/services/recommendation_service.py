"""
Recommendation selector for product panels.

Each mode maps seed identifiers to a bounded, ranked list of active products:

- similar: same category as the seed product
- frequently_bought_together: co-occurrence across orders containing the seed
- trending: order items in the trailing window
- personalized: categories and tags from the user's order history
- category: products of one category
- featured: featured products, newest first

featured is the fallback whenever a mode's seed is missing or unknown, and
for unrecognized modes (logged as a warning).
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.config import settings
from storefront.core.exceptions import StoreUnavailable
from storefront.database.models import Category, Order, OrderItem, Product
from storefront.services.filter_compiler import parse_tags
from storefront.services.rating_aggregator import ProductEntry, decorate_products, fetch_order_counts

logger = logging.getLogger(__name__)


class RecommendationType(str, Enum):
    """Supported recommendation modes"""

    similar = "similar"
    frequently_bought_together = "frequently_bought_together"
    trending = "trending"
    personalized = "personalized"
    category = "category"
    featured = "featured"


DEFAULT_TYPE = RecommendationType.similar


@dataclass
class RecommendationResult:
    """Products chosen for a panel and the mode that produced them"""

    requested: str
    strategy: RecommendationType
    entries: List[ProductEntry] = field(default_factory=list)

    @property
    def fell_back(self) -> bool:
        return self.strategy.value != self.requested


class RecommendationService:
    """Service composing catalog queries for recommendation panels"""

    def __init__(
        self,
        default_limit: Optional[int] = None,
        frequently_bought_together_limit: Optional[int] = None,
        trending_window_days: Optional[int] = None,
    ):
        self.default_limit = default_limit or settings.recommendation_limit
        self.frequently_bought_together_limit = (
            frequently_bought_together_limit or settings.frequently_bought_together_limit
        )
        self.trending_window_days = trending_window_days or settings.trending_window_days

    def resolve_type(self, raw: Optional[str]) -> RecommendationType:
        """Map the requested mode to a RecommendationType.

        Unknown values fall back to featured. This keeps existing clients
        working; the warning makes such requests visible.
        """
        if raw is None or not raw.strip():
            return DEFAULT_TYPE
        try:
            return RecommendationType(raw.strip())
        except ValueError:
            logger.warning(f"Unknown recommendation type '{raw}', falling back to featured")
            return RecommendationType.featured

    async def recommend(
        self,
        db: AsyncSession,
        type_: Optional[str] = None,
        product_id: Optional[int] = None,
        user_id: Optional[int] = None,
        category_id: Optional[int] = None,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResult:
        """Select recommendations for a panel.

        Args:
            db: Database session
            type_: Requested mode, see RecommendationType
            product_id: Seed product for similar / frequently_bought_together
            user_id: Seed user for personalized
            category_id: Seed category for category
            limit: Maximum number of products (defaults to the panel size)
            now: Reference time for the trending window

        Raises:
            StoreUnavailable: if any catalog query fails.
        """
        mode = self.resolve_type(type_)
        limit = limit or self.default_limit
        requested = (type_ or DEFAULT_TYPE.value).strip() or DEFAULT_TYPE.value

        try:
            entries: Optional[List[ProductEntry]] = None

            if mode is RecommendationType.similar:
                entries = await self.similar(db, product_id, limit)
            elif mode is RecommendationType.frequently_bought_together:
                entries = await self.frequently_bought_together(db, product_id, limit)
            elif mode is RecommendationType.trending:
                entries = await self.trending(db, limit, now=now)
            elif mode is RecommendationType.personalized:
                entries = await self.personalized(db, user_id, limit)
            elif mode is RecommendationType.category:
                entries = await self.category(db, category_id, limit)

            strategy = mode
            if entries is None:
                if mode is not RecommendationType.featured:
                    logger.info(f"No usable seed for '{mode.value}' recommendations, using featured")
                entries = await self.featured(db, limit)
                strategy = RecommendationType.featured

        except SQLAlchemyError as e:
            logger.error(f"Recommendation query failed for '{mode.value}': {e}", exc_info=True)
            raise StoreUnavailable("recommendations", e) from e

        logger.info(f"Selected {len(entries)} '{strategy.value}' recommendations (requested '{requested}')")
        return RecommendationResult(requested=requested, strategy=strategy, entries=entries)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def _active_products(self):
        return (
            select(Product)
            .options(selectinload(Product.category), selectinload(Product.reviews))
            .where(Product.is_active.is_(True))
        )

    async def _load(
        self,
        db: AsyncSession,
        query,
        order_counts: Optional[Dict[int, int]] = None,
    ) -> List[ProductEntry]:
        products = (await db.execute(query)).scalars().unique().all()
        if order_counts is None:
            order_counts = await fetch_order_counts(db, [product.id for product in products])
        return decorate_products(products, order_counts)

    async def _load_ranked(
        self,
        db: AsyncSession,
        ranked: Sequence[Tuple[int, int]],
        order_counts: Optional[Dict[int, int]] = None,
    ) -> List[ProductEntry]:
        """Load products for (product_id, score) pairs, keeping rank order"""
        if not ranked:
            return []
        ids = [product_id for product_id, _ in ranked]
        entries = await self._load(db, self._active_products().where(Product.id.in_(ids)), order_counts)
        by_id = {entry.id: entry for entry in entries}
        return [by_id[product_id] for product_id in ids if product_id in by_id]

    # ------------------------------------------------------------------
    # Modes. Returning None means the seed is unusable.
    # ------------------------------------------------------------------

    async def featured(self, db: AsyncSession, limit: int) -> List[ProductEntry]:
        query = (
            self._active_products()
            .where(Product.is_featured.is_(True))
            .order_by(Product.created_at.desc(), Product.id.asc())
            .limit(limit)
        )
        return await self._load(db, query)

    async def similar(self, db: AsyncSession, product_id: Optional[int], limit: int) -> Optional[List[ProductEntry]]:
        if product_id is None:
            return None

        seed = await db.get(Product, product_id)
        if seed is None:
            logger.warning(f"Seed product {product_id} not found for similar recommendations")
            return None

        query = (
            self._active_products()
            .where(Product.category_id == seed.category_id, Product.id != seed.id)
            .order_by(Product.is_featured.desc(), Product.created_at.desc(), Product.id.asc())
            .limit(limit)
        )
        return await self._load(db, query)

    async def frequently_bought_together(
        self, db: AsyncSession, product_id: Optional[int], limit: int
    ) -> Optional[List[ProductEntry]]:
        if product_id is None:
            return None

        seed = await db.get(Product, product_id)
        if seed is None:
            logger.warning(f"Seed product {product_id} not found for frequently bought together")
            return None

        seed_orders = select(OrderItem.order_id).where(OrderItem.product_id == product_id)
        co_occurrence = func.count(distinct(OrderItem.order_id)).label("co_occurrence")
        query = (
            select(OrderItem.product_id, co_occurrence)
            .join(Product, Product.id == OrderItem.product_id)
            .where(
                OrderItem.order_id.in_(seed_orders),
                OrderItem.product_id != product_id,
                Product.is_active.is_(True),
            )
            .group_by(OrderItem.product_id)
            .order_by(co_occurrence.desc(), OrderItem.product_id.asc())
            .limit(min(limit, self.frequently_bought_together_limit))
        )
        ranked = (await db.execute(query)).all()
        return await self._load_ranked(db, ranked)

    async def trending(self, db: AsyncSession, limit: int, now: Optional[datetime] = None) -> List[ProductEntry]:
        since = (now or datetime.utcnow()) - timedelta(days=self.trending_window_days)

        recent_items = func.count(OrderItem.id).label("recent_items")
        query = (
            select(OrderItem.product_id, recent_items)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(Order.created_at >= since, Product.is_active.is_(True))
            .group_by(OrderItem.product_id)
            .order_by(recent_items.desc(), OrderItem.product_id.asc())
            .limit(limit)
        )
        ranked = (await db.execute(query)).all()
        # order_count reports the in-window count for this panel
        return await self._load_ranked(db, ranked, order_counts=dict(ranked))

    async def personalized(self, db: AsyncSession, user_id: Optional[int], limit: int) -> Optional[List[ProductEntry]]:
        if user_id is None:
            return None

        history_query = (
            select(Product.category_id, Product.tags)
            .join(OrderItem, OrderItem.product_id == Product.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.user_id == user_id)
        )
        history = (await db.execute(history_query)).all()
        if not history:
            logger.info(f"User {user_id} has no order history")
            return None

        categories: Set[int] = {category_id for category_id, _ in history}
        tags: Set[str] = {tag.lower() for _, product_tags in history for tag in parse_tags(product_tags)}

        query = self._active_products().where(Product.category_id.in_(categories))
        entries = await self._load(db, query)

        def shared_tags(entry: ProductEntry) -> int:
            return len({tag.lower() for tag in parse_tags(entry.product.tags)} & tags)

        entries.sort(
            key=lambda entry: (
                not entry.product.is_featured,
                -shared_tags(entry),
                -entry.product.created_at.timestamp(),
                entry.id,
            )
        )
        return entries[:limit]

    async def category(self, db: AsyncSession, category_id: Optional[int], limit: int) -> Optional[List[ProductEntry]]:
        if category_id is None:
            return None

        if await db.get(Category, category_id) is None:
            logger.warning(f"Category {category_id} not found for category recommendations")
            return None

        query = (
            self._active_products()
            .where(Product.category_id == category_id)
            .order_by(Product.is_featured.desc(), Product.created_at.desc(), Product.id.asc())
            .limit(limit)
        )
        return await self._load(db, query)


# Global instance
recommendation_service = RecommendationService()
