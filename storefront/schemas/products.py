"""
Pydantic schemas for product and category endpoints

Field names are snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from storefront.services.catalog_service import CategoryNode, newest_reviews
from storefront.services.filter_compiler import parse_tags
from storefront.services.rating_aggregator import ProductEntry


class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class CategorySummarySchema(CamelModel):
    """Category reference embedded in products"""
    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None


class ProductVariantSchema(CamelModel):
    id: int
    name: str
    value: str
    price: Optional[float] = None
    sku: Optional[str] = None
    quantity: int = 0


class ReviewSchema(CamelModel):
    id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_verified: bool = False
    created_at: datetime
    user_name: Optional[str] = None

    @classmethod
    def from_review(cls, review) -> "ReviewSchema":
        return cls(
            id=review.id,
            rating=review.rating,
            title=review.title,
            comment=review.comment,
            is_verified=review.is_verified,
            created_at=review.created_at,
            user_name=review.user.name if review.user else None,
        )


class ProductSummarySchema(CamelModel):
    """Product as listed in search results and recommendation panels"""
    id: int
    slug: str
    name: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: float
    compare_price: Optional[float] = None
    sku: Optional[str] = None
    quantity: int = 0
    tags: List[str] = []
    images: Optional[str] = None
    is_featured: bool = False
    is_digital: bool = False
    category: Optional[CategorySummarySchema] = None
    variants: List[ProductVariantSchema] = []
    created_at: datetime
    average_rating: float = 0.0
    review_count: int = 0
    order_count: int = 0

    @classmethod
    def from_entry(cls, entry: ProductEntry, include_variants: bool = False) -> "ProductSummarySchema":
        product = entry.product
        return cls(
            id=product.id,
            slug=product.slug,
            name=product.name,
            description=product.description,
            short_description=product.short_description,
            price=product.price,
            compare_price=product.compare_price,
            sku=product.sku,
            quantity=product.quantity,
            tags=list(parse_tags(product.tags)),
            images=product.images,
            is_featured=product.is_featured,
            is_digital=product.is_digital,
            category=CategorySummarySchema.model_validate(product.category) if product.category else None,
            variants=[ProductVariantSchema.model_validate(v) for v in product.variants] if include_variants else [],
            created_at=product.created_at,
            average_rating=entry.stats.average_rating,
            review_count=entry.stats.review_count,
            order_count=entry.order_count,
        )


class ProductDetailSchema(ProductSummarySchema):
    """Complete product with its reviews"""
    reviews: List[ReviewSchema] = []

    @classmethod
    def from_entry(cls, entry: ProductEntry, include_variants: bool = True) -> "ProductDetailSchema":
        summary = ProductSummarySchema.from_entry(entry, include_variants=include_variants)
        reviews = [ReviewSchema.from_review(review) for review in newest_reviews(entry.product)]
        return cls(**summary.model_dump(), reviews=reviews)


class CategorySchema(CamelModel):
    """Category with active product count"""
    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    description: Optional[str] = None
    image: Optional[str] = None
    product_count: int = 0
    children: List["CategorySchema"] = []
    products: Optional[List[ProductSummarySchema]] = None

    @classmethod
    def from_node(cls, node: CategoryNode) -> "CategorySchema":
        category = node.category
        return cls(
            id=category.id,
            name=category.name,
            slug=category.slug,
            parent_id=category.parent_id,
            description=category.description,
            image=category.image,
            product_count=node.product_count,
            children=[cls.from_node(child) for child in node.children],
            products=(
                [ProductSummarySchema.from_entry(entry) for entry in node.products]
                if node.products is not None
                else None
            ),
        )


class ProductResponse(CamelModel):
    success: bool = True
    data: ProductDetailSchema


class CategoryListResponse(CamelModel):
    success: bool = True
    data: List[CategorySchema]
