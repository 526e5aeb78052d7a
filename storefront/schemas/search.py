"""
Pydantic schemas for search, listing and recommendation envelopes
"""
from typing import List, Optional

from storefront.schemas.products import CamelModel, ProductSummarySchema
from storefront.services.pagination import PageMeta
from storefront.services.search_service import Facets


class PaginationSchema(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_meta(cls, meta: PageMeta) -> "PaginationSchema":
        return cls(
            page=meta.page,
            limit=meta.limit,
            total=meta.total,
            total_pages=meta.total_pages,
            has_next=meta.has_next,
            has_prev=meta.has_prev,
        )


class CategoryFacetSchema(CamelModel):
    id: int
    name: str
    slug: str
    product_count: int


class PriceRangeSchema(CamelModel):
    min: float = 0.0
    max: float = 0.0


class SearchFiltersSchema(CamelModel):
    """Facets offered alongside search results"""
    categories: List[CategoryFacetSchema] = []
    tags: List[str] = []
    price_range: PriceRangeSchema = PriceRangeSchema()

    @classmethod
    def from_facets(cls, facets: Facets) -> "SearchFiltersSchema":
        return cls(
            categories=[CategoryFacetSchema.model_validate(category) for category in facets.categories],
            tags=list(facets.tags),
            price_range=PriceRangeSchema(min=facets.price_min, max=facets.price_max),
        )


class ProductListResponse(CamelModel):
    success: bool = True
    data: List[ProductSummarySchema]
    pagination: PaginationSchema


class SearchResponse(ProductListResponse):
    suggestions: Optional[List[str]] = None
    filters: SearchFiltersSchema


class RecommendationResponse(CamelModel):
    success: bool = True
    data: List[ProductSummarySchema]
    type: str


class ErrorResponse(CamelModel):
    success: bool = False
    error: str


# OpenAPI entries for the {success: false, error} envelope
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid query parameters"},
    500: {"model": ErrorResponse, "description": "Catalog store unavailable"},
}
NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Not found"}}
