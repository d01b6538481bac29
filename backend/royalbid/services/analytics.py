"""Catalog analytics service.

Aggregations behind the seller dashboards: price overview, category
breakdowns, bucketed price histograms, monthly listing trends and the
category/brand affinity recommendations. Every aggregate degrades to zeros
or empty lists on an empty catalog; nothing here ever returns ``None`` for a
number.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import and_, case, extract, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from royalbid.models import AuctionType, Category, Product, ProductStatus
from royalbid.services.catalog import CatalogService, Clock, utcnow
from royalbid.services.query_builder import build_query, partition_clauses, price_column
from royalbid.services.variants import ProductView, money, rules_for

logger = logging.getLogger(__name__)

# Lower bounds of the histogram buckets; the last bucket is open-ended.
PRICE_BUCKET_BOUNDARIES: tuple[int, ...] = (0, 50, 100, 250, 500, 1000, 2500, 5000, 10000)
OTHER_BUCKET = "Other"
TREND_MONTHS = 12
TOP_CATEGORY_LIMIT = 5

# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PriceOverview:
    count: int = 0
    total_value: Decimal = Decimal("0.00")
    average_price: Decimal = Decimal("0.00")
    min_price: Decimal = Decimal("0.00")
    max_price: Decimal = Decimal("0.00")


@dataclass(frozen=True, slots=True)
class CategoryBreakdown:
    category: str
    count: int
    total_value: Decimal
    average_price: Decimal
    total_views: int


@dataclass(frozen=True, slots=True)
class CategoryStats:
    total_products: int = 0
    average_price: Decimal = Decimal("0.00")
    min_price: Decimal = Decimal("0.00")
    max_price: Decimal = Decimal("0.00")
    total_views: int = 0


@dataclass(frozen=True, slots=True)
class PriceBucket:
    label: str
    lower: int | None
    upper: int | None
    count: int
    average_price: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyCount:
    year: int
    month: int
    count: int


@dataclass(frozen=True, slots=True)
class SellerOverview:
    total_products: int = 0
    active_products: int = 0
    total_views: int = 0
    average_price: Decimal = Decimal("0.00")
    total_value: Decimal = Decimal("0.00")
    average_discount: Decimal = Decimal("0.00")


@dataclass(frozen=True, slots=True)
class StatusCount:
    status: str
    count: int


@dataclass(frozen=True, slots=True)
class SellerAnalytics:
    overview: SellerOverview
    by_status: list[StatusCount]
    by_category: list[CategoryBreakdown]
    monthly_trend: list[MonthlyCount]


@dataclass(frozen=True, slots=True)
class DashboardOverview:
    total_products: int
    seller_products: int
    total_value: Decimal
    average_price: Decimal
    min_price: Decimal
    max_price: Decimal


@dataclass(slots=True)
class Dashboard:
    overview: DashboardOverview
    by_category: list[CategoryBreakdown]
    recent_products: list[ProductView]
    extras: dict[str, Any] = field(default_factory=dict)


def bucket_label(lower: int, upper: int | None) -> str:
    return f"{lower}+" if upper is None else f"{lower}-{upper}"


def trend_window_start(now: datetime, months: int = TREND_MONTHS) -> datetime:
    """First instant of the month ``months - 1`` months before *now*."""
    year, month = now.year, now.month - (months - 1)
    while month <= 0:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def trailing_months(now: datetime, months: int = TREND_MONTHS) -> list[tuple[int, int]]:
    start = trend_window_start(now, months)
    year, month = start.year, start.month
    out = []
    for _ in range(months):
        out.append((year, month))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return out


class CatalogAnalytics:
    """Async aggregations over one variant of the catalog."""

    def __init__(
        self,
        session: AsyncSession,
        variant: AuctionType | str,
        *,
        clock: Clock = utcnow,
    ):
        self.session = session
        self.variant = AuctionType(variant)
        self.rules = rules_for(self.variant)
        self.clock = clock
        self.price = price_column(self.variant)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _active_scope(self, seller_id: uuid.UUID | None = None) -> list[ColumnElement]:
        clauses = partition_clauses(self.variant)
        if seller_id is not None:
            clauses.append(Product.seller_id == seller_id)
        return clauses

    def _seller_scope(self, seller_id: uuid.UUID) -> list[ColumnElement]:
        """All of a seller's listings of this variant, whatever their status."""
        return [
            Product.auction_type == self.variant.value,
            Product.seller_id == seller_id,
        ]

    async def _by_category(self, scope: list[ColumnElement]) -> list[CategoryBreakdown]:
        count = func.count(Product.id)
        stmt = (
            select(
                Product.category,
                count.label("count"),
                func.sum(self.price).label("total_value"),
                func.avg(self.price).label("average_price"),
                func.sum(Product.view_count).label("total_views"),
            )
            .where(*scope)
            .group_by(Product.category)
            .order_by(count.desc(), Product.category.asc())
        )
        rows = (await self.session.execute(stmt)).all()
        return [
            CategoryBreakdown(
                category=row.category,
                count=row.count,
                total_value=money(row.total_value),
                average_price=money(row.average_price),
                total_views=int(row.total_views or 0),
            )
            for row in rows
        ]

    async def _monthly_trend(self, scope: list[ColumnElement]) -> list[MonthlyCount]:
        now = self.clock()
        since = trend_window_start(now)
        year = extract("year", Product.created_at)
        month = extract("month", Product.created_at)
        stmt = (
            select(year.label("year"), month.label("month"), func.count(Product.id).label("count"))
            .where(*scope, Product.created_at >= since)
            .group_by(year, month)
        )
        rows = (await self.session.execute(stmt)).all()
        counts = {(int(row.year), int(row.month)): row.count for row in rows}
        return [
            MonthlyCount(year=y, month=m, count=counts.get((y, m), 0))
            for y, m in trailing_months(now)
        ]

    # ------------------------------------------------------------------
    # Price statistics
    # ------------------------------------------------------------------

    async def overview(self, seller_id: uuid.UUID | None = None) -> PriceOverview:
        """Count and total/average/min/max of the base price of active items."""
        stmt = select(
            func.count(Product.id),
            func.sum(self.price),
            func.avg(self.price),
            func.min(self.price),
            func.max(self.price),
        ).where(*self._active_scope(seller_id))
        count, total, average, minimum, maximum = (await self.session.execute(stmt)).one()
        return PriceOverview(
            count=count or 0,
            total_value=money(total),
            average_price=money(average),
            min_price=money(minimum),
            max_price=money(maximum),
        )

    async def by_category(self, seller_id: uuid.UUID | None = None) -> list[CategoryBreakdown]:
        return await self._by_category(self._active_scope(seller_id))

    async def top_categories(self, limit: int = TOP_CATEGORY_LIMIT) -> list[CategoryBreakdown]:
        return (await self.by_category())[:limit]

    async def category_stats(self, category: Category | str) -> CategoryStats:
        stmt = select(
            func.count(Product.id),
            func.avg(self.price),
            func.min(self.price),
            func.max(self.price),
            func.sum(Product.view_count),
        ).where(*self._active_scope(), Product.category == Category(category).value)
        count, average, minimum, maximum, views = (await self.session.execute(stmt)).one()
        return CategoryStats(
            total_products=count or 0,
            average_price=money(average),
            min_price=money(minimum),
            max_price=money(maximum),
            total_views=int(views or 0),
        )

    async def price_distribution(self, seller_id: uuid.UUID | None = None) -> list[PriceBucket]:
        """Histogram over ``PRICE_BUCKET_BOUNDARIES``.

        Every regular bucket is reported (zero when empty) so charts keep a
        fixed x-axis; prices outside all boundaries land in ``Other``, which
        is only reported when it holds something.
        """
        bounds = PRICE_BUCKET_BOUNDARIES
        whens = [
            (and_(self.price >= lower, self.price < upper), lower)
            for lower, upper in zip(bounds, bounds[1:])
        ]
        whens.append((self.price >= bounds[-1], bounds[-1]))
        bucket = case(*whens, else_=-1)

        inner = (
            select(bucket.label("bucket"), self.price.label("value"))
            .where(*self._active_scope(seller_id))
            .subquery()
        )
        stmt = select(
            inner.c.bucket,
            func.count().label("count"),
            func.avg(inner.c.value).label("average_price"),
        ).group_by(inner.c.bucket)
        rows = {int(row.bucket): row for row in (await self.session.execute(stmt)).all()}

        buckets = []
        uppers = [*bounds[1:], None]
        for lower, upper in zip(bounds, uppers):
            row = rows.get(lower)
            buckets.append(
                PriceBucket(
                    label=bucket_label(lower, upper),
                    lower=lower,
                    upper=upper,
                    count=row.count if row else 0,
                    average_price=money(row.average_price if row else None),
                )
            )
        other = rows.get(-1)
        if other is not None and other.count:
            buckets.append(
                PriceBucket(
                    label=OTHER_BUCKET,
                    lower=None,
                    upper=None,
                    count=other.count,
                    average_price=money(other.average_price),
                )
            )
        return buckets

    # ------------------------------------------------------------------
    # Trends
    # ------------------------------------------------------------------

    async def monthly_trend(self, seller_id: uuid.UUID) -> list[MonthlyCount]:
        """Listings created per month by *seller_id*, trailing twelve months."""
        return await self._monthly_trend(self._seller_scope(seller_id))

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    async def recommendations(
        self,
        user_id: uuid.UUID | None,
        limit: int = 8,
    ) -> list[ProductView]:
        """Affinity picks from the user's own categories/brands, else popular items."""
        catalog = CatalogService(self.session, self.variant, clock=self.clock)
        order = (Product.view_count.desc(), Product.created_at.desc())
        picks: list[ProductView] = []

        if user_id is not None:
            rows = (
                await self.session.execute(
                    select(Product.category, Product.brand).where(*self._seller_scope(user_id))
                )
            ).all()
            categories = sorted({row.category for row in rows})
            brands = sorted({row.brand for row in rows if row.brand})

            affinity = []
            if categories:
                affinity.append(Product.category.in_(categories))
            if brands:
                affinity.append(Product.brand.in_(brands))

            if affinity:
                query = build_query(self.variant).where(
                    Product.seller_id != user_id, or_(*affinity)
                )
                picks = await catalog.fetch(query, limit, *order)
                logger.debug(
                    "Affinity recommendations for %s: %d categories, %d brands, %d hits",
                    user_id, len(categories), len(brands), len(picks),
                )

        if not picks:
            picks = await catalog.fetch(build_query(self.variant), limit, *order)
        return picks

    # ------------------------------------------------------------------
    # Seller views
    # ------------------------------------------------------------------

    async def seller_analytics(self, seller_id: uuid.UUID) -> SellerAnalytics:
        scope = self._seller_scope(seller_id)
        is_public = and_(
            Product.status == ProductStatus.ACTIVE.value, Product.is_active.is_(True)
        )
        stmt = select(
            func.count(Product.id),
            func.sum(case((is_public, 1), else_=0)),
            func.sum(Product.view_count),
            func.avg(self.price),
            func.sum(self.price),
            func.avg(Product.discount),
        ).where(*scope)
        total, active, views, average, value, discount = (await self.session.execute(stmt)).one()

        status_rows = (
            await self.session.execute(
                select(Product.status, func.count(Product.id))
                .where(*scope)
                .group_by(Product.status)
                .order_by(Product.status)
            )
        ).all()

        return SellerAnalytics(
            overview=SellerOverview(
                total_products=total or 0,
                active_products=int(active or 0),
                total_views=int(views or 0),
                average_price=money(average),
                total_value=money(value),
                average_discount=money(discount),
            ),
            by_status=[StatusCount(status=s, count=c) for s, c in status_rows],
            by_category=await self._by_category(scope),
            monthly_trend=await self._monthly_trend(scope),
        )

    async def dashboard(self, seller_id: uuid.UUID) -> Dashboard:
        """Catalog-wide dashboard plus the caller's own share and variant extras."""
        catalog = CatalogService(self.session, self.variant, clock=self.clock)
        overview = await self.overview()
        seller_count = (
            await self.session.execute(
                select(func.count(Product.id)).where(*self._active_scope(seller_id))
            )
        ).scalar_one()

        dashboard = Dashboard(
            overview=DashboardOverview(
                total_products=overview.count,
                seller_products=seller_count or 0,
                total_value=overview.total_value,
                average_price=overview.average_price,
                min_price=overview.min_price,
                max_price=overview.max_price,
            ),
            by_category=await self.by_category(),
            recent_products=await catalog.recent(10),
        )

        if self.variant is AuctionType.RETAIL:
            dashboard.extras["top_categories"] = await self.top_categories()
            dashboard.extras["price_distribution"] = await self.price_distribution()
        elif self.variant is AuctionType.AUCTION:
            dashboard.extras["live_auctions"] = await catalog.live_auctions(5)
        else:
            dashboard.extras["vintage_items"] = await catalog.vintage_items(5)
        return dashboard
