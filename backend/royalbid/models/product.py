"""Product model.

One table holds every catalog listing. ``auction_type`` is the variant tag;
the variant-specific columns (``price``/``stocks``/``discount`` for Retail and
Anti-Piece, ``starting_bid``/``auction_end_date`` for Auction) are nullable
and only meaningful for their own variant.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalbid.database import Base


class AuctionType(str, enum.Enum):
    RETAIL = "Retail"
    AUCTION = "Auction"
    ANTI_PIECE = "Anti-Piece"


class Category(str, enum.Enum):
    WATCHES = "Watches"
    COLLECTIBLES = "Collectibles"
    ART = "Art"
    JEWELRY = "Jewelry"
    ELECTRONICS = "Electronics"
    FASHION = "Fashion"
    ANTIQUES = "Antiques"
    BOOKS = "Books"
    SPORTS = "Sports"
    HOME_GARDEN = "Home & Garden"


class Condition(str, enum.Enum):
    NEW = "New"
    LIKE_NEW = "Like New"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class ProductStatus(str, enum.Enum):
    PENDING_REVIEW = "pending_review"
    ACTIVE = "active"
    REJECTED = "rejected"


class Authenticity(str, enum.Enum):
    AUTHENTIC = "authentic"
    REPLICA = "replica"
    UNKNOWN = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("idx_products_seller_id", "seller_id"),
        Index("idx_products_partition", "auction_type", "status", "is_active"),
        Index("idx_products_category", "category"),
        Index("idx_products_view_count", "view_count"),
        Index("idx_products_created_at", "created_at"),
        Index("idx_products_auction_end_date", "auction_end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    condition: Mapped[str] = mapped_column(String(20), nullable=False)
    brand: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str | None] = mapped_column(String(100))
    sku: Mapped[str | None] = mapped_column(String(40), unique=True)
    authenticity: Mapped[str] = mapped_column(
        String(20), default=Authenticity.UNKNOWN.value, nullable=False
    )
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    # [{"url": ..., "alt_text": ..., "is_primary": bool}, ...]
    images: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)

    auction_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Retail / Anti-Piece
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    stocks: Mapped[int | None] = mapped_column(Integer)
    discount: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)

    # Auction
    starting_bid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    auction_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    status: Mapped[str] = mapped_column(
        String(20), default=ProductStatus.PENDING_REVIEW.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    seller = relationship("User", back_populates="products", lazy="selectin")

    @property
    def primary_image(self) -> dict | None:
        for image in self.images or []:
            if image.get("is_primary"):
                return image
        return self.images[0] if self.images else None

    @property
    def is_public(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value and self.is_active

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, title='{self.title}', type={self.auction_type})>"
