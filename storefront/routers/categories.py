"""
Category API routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.schemas.products import CategoryListResponse, CategorySchema
from storefront.schemas.search import ERROR_RESPONSES
from storefront.services.catalog_service import list_categories

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/categories", tags=["categories"])


def _flag(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() == "true"


@router.get("", response_model=CategoryListResponse, response_model_by_alias=True, responses=ERROR_RESPONSES)
async def get_categories(
    parent_only: Optional[str] = Query(None, alias="parentOnly"),
    slug: Optional[str] = Query(None),
    include_products: Optional[str] = Query(None, alias="includeProducts"),
    db: AsyncSession = Depends(get_db),
):
    """Get categories with children and active product counts"""
    nodes = await list_categories(
        db,
        parent_only=_flag(parent_only),
        slug=(slug or "").strip() or None,
        include_products=_flag(include_products),
    )
    return CategoryListResponse(data=[CategorySchema.from_node(node) for node in nodes])
