"""
Product API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.schemas.products import ProductDetailSchema, ProductResponse, ProductSummarySchema
from storefront.schemas.search import ERROR_RESPONSES, NOT_FOUND_RESPONSE, PaginationSchema, ProductListResponse
from storefront.services.catalog_service import get_product_by_slug
from storefront.services.filter_compiler import compile_filter, parse_filter_spec
from storefront.services.pagination import parse_page_params
from storefront.services.rank_selector import SortKey, select_rank
from storefront.services.search_service import search_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListResponse, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def get_products(
    category: Optional[str] = Query(None, description="Category slug"),
    price_min: Optional[str] = Query(None, alias="priceMin"),
    price_max: Optional[str] = Query(None, alias="priceMax"),
    rating: Optional[str] = Query(None),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    tags: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Text search"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated list of products, newest first by default"""
    spec = parse_filter_spec(
        q=search,
        category=category,
        price_min=price_min,
        price_max=price_max,
        rating=rating,
        in_stock=in_stock,
        tags=tags,
    )
    sort = select_rank(sort_by, sort_order, has_text=bool(spec.text), default_key=SortKey.created_at)
    page_number, page_size = parse_page_params(page, limit)

    result = await search_service.search(
        db,
        compile_filter(spec),
        sort,
        page_number,
        page_size,
        include_suggestions=False,
        include_facets=False,
    )

    return ProductListResponse(
        data=[ProductSummarySchema.from_entry(entry, include_variants=True) for entry in result.entries],
        pagination=PaginationSchema.from_meta(result.page),
    )


@router.get(
    "/{slug}",
    response_model=ProductResponse,
    response_model_by_alias=True,
    responses={**ERROR_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def get_product(slug: str, db: AsyncSession = Depends(get_db)):
    """Get an active product by slug with variants and reviews"""
    entry = await get_product_by_slug(db, slug)
    return ProductResponse(data=ProductDetailSchema.from_entry(entry))
