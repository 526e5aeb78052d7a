"""
Recommendation API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.schemas.products import ProductSummarySchema
from storefront.schemas.search import ERROR_RESPONSES, RecommendationResponse
from storefront.services.pagination import parse_page_params
from storefront.services.recommendation_service import recommendation_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("", response_model=RecommendationResponse, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def get_recommendations(
    type: Optional[str] = Query(None, description="similar, frequently_bought_together, trending, personalized, category or featured"),
    product_id: Optional[int] = Query(None, alias="productId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Products for a recommendation panel"""
    _, panel_size = parse_page_params(None, limit, default_limit=settings.recommendation_limit)

    result = await recommendation_service.recommend(
        db,
        type_=type,
        product_id=product_id,
        user_id=user_id,
        category_id=category_id,
        limit=panel_size,
    )

    return RecommendationResponse(
        data=[ProductSummarySchema.from_entry(entry) for entry in result.entries],
        type=result.strategy.value,
    )
