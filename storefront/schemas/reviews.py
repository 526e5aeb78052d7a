"""
Pydantic schemas for the reviews endpoint
"""
from typing import List

from storefront.schemas.products import CamelModel, ReviewSchema
from storefront.schemas.search import PaginationSchema
from storefront.services.review_service import ReviewPage, ReviewStats


class RatingBucketSchema(CamelModel):
    rating: int
    count: int
    percentage: float


class ReviewStatsSchema(CamelModel):
    average_rating: float = 0.0
    total_reviews: int = 0
    rating_distribution: List[RatingBucketSchema] = []

    @classmethod
    def from_stats(cls, stats: ReviewStats) -> "ReviewStatsSchema":
        return cls(
            average_rating=stats.average_rating,
            total_reviews=stats.total_reviews,
            rating_distribution=[RatingBucketSchema.model_validate(bucket) for bucket in stats.distribution],
        )


class ReviewListSchema(CamelModel):
    reviews: List[ReviewSchema]
    pagination: PaginationSchema
    stats: ReviewStatsSchema

    @classmethod
    def from_page(cls, result: ReviewPage) -> "ReviewListSchema":
        return cls(
            reviews=[ReviewSchema.from_review(review) for review in result.reviews],
            pagination=PaginationSchema.from_meta(result.page),
            stats=ReviewStatsSchema.from_stats(result.stats),
        )


class ReviewListResponse(CamelModel):
    success: bool = True
    data: ReviewListSchema
