"""
Database module for the Sacred Treasures catalog
"""
from .models import Base, Category, Order, OrderItem, Product, ProductVariant, Review, User

__all__ = [
    "Base",
    "Category",
    "Order",
    "OrderItem",
    "Product",
    "ProductVariant",
    "Review",
    "User",
]
