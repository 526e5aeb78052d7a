"""
Review API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.exceptions import InvalidFilter
from storefront.schemas.reviews import ReviewListResponse, ReviewListSchema
from storefront.schemas.search import ERROR_RESPONSES
from storefront.services.pagination import parse_page_params
from storefront.services.review_service import list_reviews, parse_rating_filter, parse_review_sort

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=ReviewListResponse, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def get_reviews(
    product_id: Optional[int] = Query(None, alias="productId"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="newest, oldest, highest or lowest"),
    rating: Optional[str] = Query(None, description="Exact star rating, or all"),
    db: AsyncSession = Depends(get_db),
):
    """Paginated reviews of one product with its rating distribution"""
    if product_id is None:
        raise InvalidFilter("productId", None, "is required")

    page_number, page_size = parse_page_params(page, limit, default_limit=settings.review_page_size)

    result = await list_reviews(
        db,
        product_id,
        page=page_number,
        limit=page_size,
        sort=parse_review_sort(sort_by),
        rating=parse_rating_filter(rating),
    )
    return ReviewListResponse(data=ReviewListSchema.from_page(result))
