"""
Search API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.schemas.products import ProductSummarySchema
from storefront.schemas.search import ERROR_RESPONSES, PaginationSchema, SearchFiltersSchema, SearchResponse
from storefront.services.filter_compiler import compile_filter, parse_filter_spec
from storefront.services.pagination import parse_page_params
from storefront.services.rank_selector import select_rank
from storefront.services.search_service import search_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def search_products(
    q: Optional[str] = Query(None, description="Text to match in name, description, tags or category"),
    category: Optional[str] = Query(None, description="Category slug"),
    price_min: Optional[str] = Query(None, alias="priceMin"),
    price_max: Optional[str] = Query(None, alias="priceMax"),
    rating: Optional[str] = Query(None, description="Minimum average rating"),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    tags: Optional[str] = Query(None, description="Comma separated tags, any of"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Search active products with filters, facets and suggestions"""
    spec = parse_filter_spec(
        q=q,
        category=category,
        price_min=price_min,
        price_max=price_max,
        rating=rating,
        in_stock=in_stock,
        tags=tags,
    )
    sort = select_rank(sort_by, sort_order, has_text=bool(spec.text))
    page_number, page_size = parse_page_params(page, limit)

    result = await search_service.search(db, compile_filter(spec), sort, page_number, page_size)

    return SearchResponse(
        data=[ProductSummarySchema.from_entry(entry, include_variants=True) for entry in result.entries],
        pagination=PaginationSchema.from_meta(result.page),
        suggestions=result.suggestions,
        filters=SearchFiltersSchema.from_facets(result.facets),
    )
