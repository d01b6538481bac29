"""Public catalog routes, one router per variant.

``build_router`` mounts the same set of listing, detail and analytics routes
under the variant slug (``/retail``, ``/auction``, ``/anti-pieces``). Static
sub-paths are declared before ``/products/{product_id}`` so they are never
captured as ids.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from royalbid.api.schemas import (
    ApiResponse,
    CategoryBreakdownOut,
    CategoryStatsOut,
    DashboardOut,
    DashboardOverviewOut,
    PriceBucketOut,
    ProductDetailOut,
    ProductOut,
    ProductPageOut,
    SellerAnalyticsOut,
    ok,
    products_out,
)
from royalbid.auth import get_current_user, get_optional_user
from royalbid.config import get_settings
from royalbid.database import get_db
from royalbid.models import AuctionType, Category, Condition, User
from royalbid.services.analytics import CatalogAnalytics
from royalbid.services.catalog import CatalogService
from royalbid.services.query_builder import CatalogFilters
from royalbid.services.variants import rules_for


def build_router(variant: AuctionType) -> APIRouter:
    settings = get_settings()
    rules = rules_for(variant)
    label = variant.value
    router = APIRouter(prefix=f"/{rules.slug}", tags=[rules.slug])

    def catalog(db: AsyncSession) -> CatalogService:
        return CatalogService(db, variant, max_page_size=settings.max_page_size)

    @router.get("/products", response_model=ApiResponse[ProductPageOut])
    async def list_products(
        category: Category | None = Query(None),
        condition: Condition | None = Query(None),
        brand: str | None = Query(None, max_length=100),
        min_price: Decimal | None = Query(None, ge=0),
        max_price: Decimal | None = Query(None, ge=0),
        search: str | None = Query(None),
        sort: str | None = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
        db: AsyncSession = Depends(get_db),
    ):
        """Browse active listings with filters, sort and pagination."""
        filters = CatalogFilters(
            category=category,
            condition=condition,
            brand=brand,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort=sort,
        )
        result = await catalog(db).list_products(filters, page, limit)
        return ok(ProductPageOut.from_page(result), f"{label} products retrieved successfully")

    @router.get("/products/featured", response_model=ApiResponse[list[ProductOut]])
    async def featured_products(
        limit: int = Query(settings.showcase_limit, ge=1, le=50),
        db: AsyncSession = Depends(get_db),
    ):
        items = await catalog(db).featured(limit)
        return ok(products_out(items), f"Featured {label} products retrieved successfully")

    @router.get("/products/popular", response_model=ApiResponse[list[ProductOut]])
    async def popular_products(
        limit: int = Query(settings.showcase_limit, ge=1, le=50),
        db: AsyncSession = Depends(get_db),
    ):
        items = await catalog(db).popular(limit)
        return ok(products_out(items), f"Popular {label} products retrieved successfully")

    if rules.discountable:

        @router.get("/products/on-sale", response_model=ApiResponse[ProductPageOut])
        async def on_sale_products(
            page: int = Query(1, ge=1),
            limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
            db: AsyncSession = Depends(get_db),
        ):
            result = await catalog(db).on_sale(page, limit)
            return ok(ProductPageOut.from_page(result), f"{label} products on sale retrieved successfully")

    @router.get("/products/search", response_model=ApiResponse[ProductPageOut])
    async def search_products(
        q: str | None = Query(None),
        sort: str | None = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
        db: AsyncSession = Depends(get_db),
    ):
        """Free-text search over title, description, brand and tags."""
        result = await catalog(db).search(q, page, limit, sort)
        return ok(ProductPageOut.from_page(result), "Search completed successfully")

    @router.get("/products/category/{category}", response_model=ApiResponse[ProductPageOut])
    async def products_by_category(
        category: Category,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
        db: AsyncSession = Depends(get_db),
    ):
        result = await catalog(db).by_category(category, page, limit)
        stats = await CatalogAnalytics(db, variant).category_stats(category)
        data = ProductPageOut.from_page(
            result,
            category=category.value,
            stats=CategoryStatsOut.model_validate(stats),
        )
        return ok(data, f"{category.value} {label} products retrieved successfully")

    @router.get("/products/{product_id}", response_model=ApiResponse[ProductDetailOut])
    async def get_product(product_id: str, db: AsyncSession = Depends(get_db)):
        """Product detail; counts one view."""
        detail = await catalog(db).get_detail(product_id)
        data = ProductDetailOut(
            product=ProductOut.from_view(detail.product),
            related_products=products_out(detail.related),
        )
        return ok(data, f"{rules.noun} retrieved successfully")

    @router.get("/dashboard", response_model=ApiResponse[DashboardOut])
    async def dashboard(
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        board = await CatalogAnalytics(db, variant).dashboard(user.id)
        extras = {}
        for key, value in board.extras.items():
            if key in ("live_auctions", "vintage_items"):
                extras[key] = products_out(value)
            elif key == "price_distribution":
                extras[key] = [PriceBucketOut.model_validate(b) for b in value]
            else:
                extras[key] = [CategoryBreakdownOut.model_validate(c) for c in value]
        data = DashboardOut(
            overview=DashboardOverviewOut.model_validate(board.overview),
            by_category=[CategoryBreakdownOut.model_validate(c) for c in board.by_category],
            recent_products=products_out(board.recent_products),
            **extras,
        )
        return ok(data, f"{label} dashboard statistics retrieved successfully")

    @router.get("/analytics", response_model=ApiResponse[SellerAnalyticsOut])
    async def seller_analytics(
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        """The caller's own listings of this variant, across every status."""
        result = await CatalogAnalytics(db, variant).seller_analytics(user.id)
        return ok(SellerAnalyticsOut.model_validate(result), f"{label} analytics retrieved successfully")

    @router.get("/recommendations", response_model=ApiResponse[list[ProductOut]])
    async def recommendations(
        limit: int = Query(settings.showcase_limit, ge=1, le=50),
        user: User | None = Depends(get_optional_user),
        db: AsyncSession = Depends(get_db),
    ):
        items = await CatalogAnalytics(db, variant).recommendations(user.id if user else None, limit)
        return ok(products_out(items), f"{label} recommendations retrieved successfully")

    return router


retail_router = build_router(AuctionType.RETAIL)
auction_router = build_router(AuctionType.AUCTION)
anti_pieces_router = build_router(AuctionType.ANTI_PIECE)
