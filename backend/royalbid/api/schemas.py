"""Request and response models shared by the catalog routers."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

from royalbid.models import AuctionType, Authenticity, Category, Condition
from royalbid.services.catalog import CatalogPage
from royalbid.services.variants import ProductView

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "OK"
    data: T | None = None


def ok(data: Any = None, message: str = "OK") -> dict:
    return {"success": True, "message": message, "data": data}


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ImageIn(BaseModel):
    url: str = Field(max_length=2048)
    alt_text: str | None = Field(None, max_length=200)
    is_primary: bool = False

    @field_validator("url")
    @classmethod
    def url_is_http_or_inline(cls, value: str) -> str:
        if not value.startswith(("http://", "https://", "data:image/")):
            raise ValueError("Image URL must be an http(s) URL or a data:image/ URI")
        return value


class ImageOut(BaseModel):
    url: str
    alt_text: str | None = None
    is_primary: bool = False


class SellerSummary(BaseModel):
    id: uuid.UUID
    first_name: str | None
    last_name: str | None

    model_config = {"from_attributes": True}


class ProductOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    condition: str
    brand: str | None
    model: str | None
    sku: str | None
    authenticity: str
    tags: list[str]
    images: list[ImageOut]
    primary_image: ImageOut | None
    auction_type: str
    price: Decimal | None
    stocks: int | None
    discount: Decimal
    starting_bid: Decimal | None
    auction_end_date: datetime | None
    status: str
    is_active: bool
    is_featured: bool
    view_count: int
    created_at: datetime
    updated_at: datetime
    seller: SellerSummary | None

    # Derived at read time
    effective_price: Decimal
    auction_status: str | None = None
    time_left: int | None = None
    time_left_display: str | None = None
    age: str | None = None

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductOut":
        p = view.product
        d = view.derived
        return cls(
            id=p.id,
            title=p.title,
            description=p.description,
            category=p.category,
            condition=p.condition,
            brand=p.brand,
            model=p.model,
            sku=p.sku,
            authenticity=p.authenticity,
            tags=p.tags or [],
            images=p.images or [],
            primary_image=p.primary_image,
            auction_type=p.auction_type,
            price=p.price,
            stocks=p.stocks,
            discount=p.discount or Decimal("0"),
            starting_bid=p.starting_bid,
            auction_end_date=p.auction_end_date,
            status=p.status,
            is_active=p.is_active,
            is_featured=p.is_featured,
            view_count=p.view_count,
            created_at=p.created_at,
            updated_at=p.updated_at,
            seller=SellerSummary.model_validate(p.seller) if p.seller else None,
            effective_price=d.effective_price,
            auction_status=d.auction_status.value if d.auction_status else None,
            time_left=d.time_left,
            time_left_display=d.time_left_display,
            age=d.age,
        )


def products_out(views: list[ProductView]) -> list[ProductOut]:
    return [ProductOut.from_view(v) for v in views]


class _ListingFields(BaseModel):
    model_config = {"use_enum_values": True, "extra": "forbid"}

    price: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    stocks: int | None = Field(None, ge=0)
    discount: Decimal | None = Field(None, ge=0, le=100)
    starting_bid: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    auction_end_date: datetime | None = None


class ProductCreate(_ListingFields):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=2000)
    category: Category
    condition: Condition
    auction_type: AuctionType
    brand: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    sku: str | None = Field(None, max_length=40)
    authenticity: Authenticity = Field(Authenticity.UNKNOWN, validate_default=True)
    tags: list[str] = Field(default_factory=list)
    images: list[ImageIn] = Field(default_factory=list)


class ProductUpdate(_ListingFields):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, min_length=1, max_length=2000)
    category: Category | None = None
    condition: Condition | None = None
    brand: str | None = Field(None, max_length=100)
    model: str | None = Field(None, max_length=100)
    authenticity: Authenticity | None = None
    tags: list[str] | None = None
    images: list[ImageIn] | None = None

    @field_validator(
        "title", "description", "category", "condition", "authenticity", "tags", "images",
        mode="before",
    )
    @classmethod
    def not_null(cls, value: Any) -> Any:
        # Omit a field to leave it unchanged; these columns cannot be cleared.
        if value is None:
            raise ValueError("Field cannot be null")
        return value


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    model_config = {"from_attributes": True}


class PriceRangeOut(BaseModel):
    min: Decimal
    max: Decimal

    model_config = {"from_attributes": True}


class FilterMetadataOut(BaseModel):
    categories: list[str]
    conditions: list[str]
    brands: list[str]
    price_range: PriceRangeOut

    model_config = {"from_attributes": True}


class CategoryStatsOut(BaseModel):
    total_products: int
    average_price: Decimal
    min_price: Decimal
    max_price: Decimal
    total_views: int

    model_config = {"from_attributes": True}


class ProductPageOut(BaseModel):
    products: list[ProductOut]
    pagination: PaginationOut
    filters: FilterMetadataOut | None = None
    query: str | None = None
    category: str | None = None
    stats: CategoryStatsOut | None = None

    @classmethod
    def from_page(cls, page: CatalogPage, **extra) -> "ProductPageOut":
        return cls(
            products=products_out(page.items),
            pagination=PaginationOut.model_validate(page.pagination),
            filters=FilterMetadataOut.model_validate(page.filters) if page.filters else None,
            query=page.query,
            **extra,
        )


class ProductDetailOut(BaseModel):
    product: ProductOut
    related_products: list[ProductOut]


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class CategoryBreakdownOut(BaseModel):
    category: str
    count: int
    total_value: Decimal
    average_price: Decimal
    total_views: int

    model_config = {"from_attributes": True}


class PriceBucketOut(BaseModel):
    label: str
    lower: int | None
    upper: int | None
    count: int
    average_price: Decimal

    model_config = {"from_attributes": True}


class MonthlyCountOut(BaseModel):
    year: int
    month: int
    count: int

    model_config = {"from_attributes": True}


class DashboardOverviewOut(BaseModel):
    total_products: int
    seller_products: int
    total_value: Decimal
    average_price: Decimal
    min_price: Decimal
    max_price: Decimal

    model_config = {"from_attributes": True}


class DashboardOut(BaseModel):
    overview: DashboardOverviewOut
    by_category: list[CategoryBreakdownOut]
    recent_products: list[ProductOut]
    top_categories: list[CategoryBreakdownOut] | None = None
    price_distribution: list[PriceBucketOut] | None = None
    live_auctions: list[ProductOut] | None = None
    vintage_items: list[ProductOut] | None = None


class SellerOverviewOut(BaseModel):
    total_products: int
    active_products: int
    total_views: int
    average_price: Decimal
    total_value: Decimal
    average_discount: Decimal

    model_config = {"from_attributes": True}


class StatusCountOut(BaseModel):
    status: str
    count: int

    model_config = {"from_attributes": True}


class SellerAnalyticsOut(BaseModel):
    overview: SellerOverviewOut
    by_status: list[StatusCountOut]
    by_category: list[CategoryBreakdownOut]
    monthly_trend: list[MonthlyCountOut]

    model_config = {"from_attributes": True}
