"""
Search service: runs the filter/aggregate/rank/paginate pipeline and gathers
the suggestions and facets that accompany a result page.

Used by: routers/search.py (full envelope) and routers/products.py (listing).
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.config import settings
from storefront.core.exceptions import StoreUnavailable
from storefront.database.models import Category, Product
from storefront.services.filter_compiler import CompiledFilter, contains_pattern, parse_tags
from storefront.services.pagination import PageMeta, paginate
from storefront.services.rank_selector import SortSpec
from storefront.services.rating_aggregator import (
    ProductEntry,
    apply_rating_floor,
    decorate_products,
    fetch_order_counts,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryFacet:
    id: int
    name: str
    slug: str
    product_count: int


@dataclass
class Facets:
    """Filter options available across the active catalog"""

    categories: List[CategoryFacet] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    price_min: float = 0.0
    price_max: float = 0.0


@dataclass
class SearchResult:
    entries: List[ProductEntry]
    page: PageMeta
    suggestions: Optional[List[str]] = None
    facets: Optional[Facets] = None


class SearchService:
    """Read-only search over the catalog"""

    def _product_query(self, compiled: CompiledFilter):
        return (
            select(Product)
            .options(
                selectinload(Product.category),
                selectinload(Product.variants),
                selectinload(Product.reviews),
            )
            .where(compiled.predicate)
        )

    async def search(
        self,
        db: AsyncSession,
        compiled: CompiledFilter,
        sort: SortSpec,
        page: int,
        limit: int,
        include_suggestions: bool = True,
        include_facets: bool = True,
    ) -> SearchResult:
        """Run a search and assemble the result envelope.

        Raises:
            StoreUnavailable: if any catalog query fails.
        """
        try:
            entries, meta = await self._fetch_page(db, compiled, sort, page, limit)

            suggestions = None
            if include_suggestions and compiled.spec.text:
                suggestions = await self.get_suggestions(db, compiled.spec.text)

            facets = await self.get_facets(db) if include_facets else None

        except SQLAlchemyError as e:
            logger.error(f"Catalog search failed: {e}", exc_info=True)
            raise StoreUnavailable("search", e) from e

        logger.info(
            f"Search returned {len(entries)} of {meta.total} products "
            f"(page={meta.page}, limit={meta.limit}, sort={sort.key.value} {sort.direction.value})"
        )
        return SearchResult(entries=entries, page=meta, suggestions=suggestions, facets=facets)

    async def _fetch_page(
        self,
        db: AsyncSession,
        compiled: CompiledFilter,
        sort: SortSpec,
        page: int,
        limit: int,
    ) -> Tuple[List[ProductEntry], PageMeta]:
        query = self._product_query(compiled).order_by(*sort.order_by)

        if not compiled.needs_rating_filter and not sort.post_fetch:
            # Everything is expressible in SQL: count and window in the database
            count_query = select(func.count()).select_from(Product).where(compiled.predicate)
            total = (await db.execute(count_query)).scalar() or 0
            window = paginate(total, page, limit)

            result = await db.execute(query.offset(window.offset).limit(window.limit))
            products = result.scalars().unique().all()
            order_counts = await fetch_order_counts(db, [product.id for product in products])
            return decorate_products(products, order_counts), window.meta

        # Rating floor or aggregate sort: aggregate the full match set first so
        # that total and page boundaries reflect the filtered set.
        result = await db.execute(query)
        products = result.scalars().unique().all()
        order_counts = await fetch_order_counts(db, [product.id for product in products])

        entries = decorate_products(products, order_counts)
        entries = apply_rating_floor(entries, compiled.rating_floor)
        entries = sort.sort_entries(entries)

        window = paginate(len(entries), page, limit)
        return window.slice(entries), window.meta

    async def get_suggestions(self, db: AsyncSession, text: str) -> List[str]:
        """Product names and tags matching the query text, deduplicated"""
        pattern = contains_pattern(text)
        query = (
            select(Product.name, Product.tags)
            .where(
                Product.is_active.is_(True),
                or_(
                    Product.name.ilike(pattern, escape="\\"),
                    Product.tags.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(Product.is_featured.desc(), Product.id.asc())
            .limit(settings.suggestion_product_limit)
        )
        rows = (await db.execute(query)).all()

        suggestions: List[str] = []

        def add(value: str):
            if value and value not in suggestions:
                suggestions.append(value)

        for name, _ in rows:
            add(name)

        needle = text.lower()
        for _, tags in rows:
            for tag in parse_tags(tags):
                if needle in tag.lower():
                    add(tag)

        return suggestions[: settings.suggestion_limit]

    async def get_facets(self, db: AsyncSession) -> Facets:
        """Categories with active products, tag vocabulary and price range"""
        product_count = func.count(Product.id)
        category_query = (
            select(Category.id, Category.name, Category.slug, product_count)
            .join(Product, and_(Product.category_id == Category.id, Product.is_active.is_(True)))
            .group_by(Category.id, Category.name, Category.slug)
            .order_by(Category.name.asc(), Category.id.asc())
        )
        category_rows = (await db.execute(category_query)).all()
        categories = [
            CategoryFacet(id=row[0], name=row[1], slug=row[2], product_count=row[3]) for row in category_rows
        ]

        tag_rows = (await db.execute(select(Product.tags).where(Product.is_active.is_(True)))).scalars().all()
        vocabulary = set()
        for tags in tag_rows:
            vocabulary.update(parse_tags(tags))

        price_query = select(func.min(Product.price), func.max(Product.price)).where(Product.is_active.is_(True))
        price_min, price_max = (await db.execute(price_query)).one()

        return Facets(
            categories=categories,
            tags=sorted(vocabulary),
            price_min=float(price_min or 0),
            price_max=float(price_max or 0),
        )


# Global instance
search_service = SearchService()
