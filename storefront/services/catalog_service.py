"""
Catalog browsing: product detail and the category tree.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.core.exceptions import NotFound, StoreUnavailable
from storefront.database.models import Category, Product, Review
from storefront.services.rating_aggregator import ProductEntry, decorate_products, fetch_order_counts

logger = logging.getLogger(__name__)

CATEGORY_PRODUCT_PREVIEW = 8


@dataclass
class CategoryNode:
    """A category with its active product count and optional product preview"""

    category: Category
    product_count: int = 0
    children: List["CategoryNode"] = field(default_factory=list)
    products: Optional[List[ProductEntry]] = None


async def get_product_by_slug(db: AsyncSession, slug: str) -> ProductEntry:
    """Active product with category, variants and reviews loaded.

    Raises:
        NotFound: if no active product has this slug.
        StoreUnavailable: if the query fails.
    """
    try:
        query = (
            select(Product)
            .options(
                selectinload(Product.category),
                selectinload(Product.variants),
                selectinload(Product.reviews).selectinload(Review.user),
            )
            .where(Product.slug == slug, Product.is_active.is_(True))
        )
        product = (await db.execute(query)).scalars().first()
        if product is None:
            raise NotFound("Product", slug)

        order_counts = await fetch_order_counts(db, [product.id])
    except SQLAlchemyError as e:
        logger.error(f"Error fetching product {slug}: {e}", exc_info=True)
        raise StoreUnavailable("product_detail", e) from e

    return decorate_products([product], order_counts)[0]


def newest_reviews(product: Product) -> List[Review]:
    return sorted(product.reviews, key=lambda review: (review.created_at, review.id), reverse=True)


async def _active_counts(db: AsyncSession) -> Dict[int, int]:
    query = (
        select(Product.category_id, func.count(Product.id))
        .where(Product.is_active.is_(True))
        .group_by(Product.category_id)
    )
    return {category_id: count for category_id, count in (await db.execute(query)).all()}


async def list_categories(
    db: AsyncSession,
    parent_only: bool = False,
    slug: Optional[str] = None,
    include_products: bool = False,
) -> List[CategoryNode]:
    """Categories ordered by name with children and active product counts.

    With include_products, each category embeds its active products, featured
    first; capped at a preview size unless a single slug is requested.
    """
    try:
        query = select(Category).options(selectinload(Category.children)).order_by(Category.name.asc())
        if parent_only:
            query = query.where(Category.parent_id.is_(None))
        if slug:
            query = query.where(Category.slug == slug)
        categories = (await db.execute(query)).scalars().unique().all()

        counts = await _active_counts(db)

        products_by_category: Dict[int, List[ProductEntry]] = defaultdict(list)
        if include_products and categories:
            product_query = (
                select(Product)
                .options(selectinload(Product.category), selectinload(Product.reviews))
                .where(
                    Product.is_active.is_(True),
                    Product.category_id.in_([category.id for category in categories]),
                )
                .order_by(Product.is_featured.desc(), Product.created_at.desc(), Product.id.asc())
            )
            products = (await db.execute(product_query)).scalars().unique().all()
            order_counts = await fetch_order_counts(db, [product.id for product in products])
            for entry in decorate_products(products, order_counts):
                products_by_category[entry.product.category_id].append(entry)

    except SQLAlchemyError as e:
        logger.error(f"Error fetching categories: {e}", exc_info=True)
        raise StoreUnavailable("categories", e) from e

    nodes = []
    for category in categories:
        node = CategoryNode(
            category=category,
            product_count=counts.get(category.id, 0),
            children=[CategoryNode(category=child, product_count=counts.get(child.id, 0)) for child in category.children],
        )
        if include_products:
            entries = products_by_category.get(category.id, [])
            node.products = entries if slug else entries[:CATEGORY_PRODUCT_PREVIEW]
        nodes.append(node)

    logger.info(f"Fetched {len(nodes)} categories (parent_only={parent_only}, slug={slug})")
    return nodes
