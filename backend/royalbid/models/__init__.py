"""SQLAlchemy models."""

from royalbid.models.product import (
    AuctionType,
    Authenticity,
    Category,
    Condition,
    Product,
    ProductStatus,
)
from royalbid.models.user import User, UserRole

__all__ = [
    "AuctionType",
    "Authenticity",
    "Category",
    "Condition",
    "Product",
    "ProductStatus",
    "User",
    "UserRole",
]
