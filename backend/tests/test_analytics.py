"""Tests for catalog analytics."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from royalbid.services.analytics import (
    PRICE_BUCKET_BOUNDARIES,
    CatalogAnalytics,
    trailing_months,
    trend_window_start,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestTrendWindow:
    def test_twelve_months_including_current(self):
        months = trailing_months(NOW)
        assert len(months) == 12
        assert months[0] == (2025, 7)
        assert months[-1] == (2026, 6)

    def test_window_crosses_year_boundary(self):
        start = trend_window_start(datetime(2026, 1, 31, tzinfo=timezone.utc))
        assert (start.year, start.month, start.day) == (2025, 2, 1)


@pytest.mark.asyncio
async def test_empty_catalog_yields_zeros(db, seller, clock):
    analytics = CatalogAnalytics(db, "Retail", clock=clock)

    overview = await analytics.overview()
    assert overview.count == 0
    assert overview.total_value == Decimal("0.00")
    assert overview.average_price == Decimal("0.00")
    assert await analytics.by_category() == []

    buckets = await analytics.price_distribution()
    assert len(buckets) == len(PRICE_BUCKET_BOUNDARIES)
    assert all(b.count == 0 for b in buckets)

    trend = await analytics.monthly_trend(seller.id)
    assert [m.count for m in trend] == [0] * 12


@pytest.mark.asyncio
async def test_overview(db, make_product, clock):
    for price in ("10", "20", "60"):
        await make_product(price=Decimal(price))
    await make_product(price=Decimal("999"), status="pending_review", is_active=False)

    overview = await CatalogAnalytics(db, "Retail", clock=clock).overview()
    assert overview.count == 3
    assert overview.total_value == Decimal("90.00")
    assert overview.average_price == Decimal("30.00")
    assert (overview.min_price, overview.max_price) == (Decimal("10.00"), Decimal("60.00"))


@pytest.mark.asyncio
async def test_by_category_sorted_by_count(db, make_product, clock):
    await make_product(category="Art", price=Decimal("100"), view_count=3)
    await make_product(category="Books", price=Decimal("10"), view_count=1)
    await make_product(category="Books", price=Decimal("30"), view_count=2)

    rows = await CatalogAnalytics(db, "Retail", clock=clock).by_category()
    assert [(r.category, r.count) for r in rows] == [("Books", 2), ("Art", 1)]
    assert rows[0].average_price == Decimal("20.00")
    assert rows[0].total_views == 3

    top = await CatalogAnalytics(db, "Retail", clock=clock).top_categories(limit=1)
    assert [r.category for r in top] == ["Books"]


@pytest.mark.asyncio
async def test_price_distribution_buckets(db, make_product, clock):
    for price in ("10", "40", "50", "750", "12000"):
        await make_product(price=Decimal(price))

    buckets = await CatalogAnalytics(db, "Retail", clock=clock).price_distribution()
    counts = {b.label: b.count for b in buckets}
    assert counts["0-50"] == 2
    assert counts["50-100"] == 1
    assert counts["500-1000"] == 1
    assert counts["10000+"] == 1
    assert counts["100-250"] == 0
    assert "Other" not in counts
    assert buckets[0].average_price == Decimal("25.00")


@pytest.mark.asyncio
async def test_price_distribution_uses_starting_bid_for_auctions(db, make_product, clock):
    await make_product("Auction", starting_bid=Decimal("300"))
    buckets = await CatalogAnalytics(db, "Auction", clock=clock).price_distribution()
    assert {b.label: b.count for b in buckets}["250-500"] == 1


@pytest.mark.asyncio
async def test_monthly_trend_zero_fills(db, seller, make_product, clock):
    await make_product(created_at=NOW - timedelta(days=1))
    await make_product(created_at=NOW - timedelta(days=2))
    await make_product(created_at=datetime(2026, 3, 10, tzinfo=timezone.utc))
    await make_product(created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

    trend = await CatalogAnalytics(db, "Retail", clock=clock).monthly_trend(seller.id)
    by_month = {(m.year, m.month): m.count for m in trend}
    assert len(trend) == 12
    assert by_month[(2026, 6)] == 2
    assert by_month[(2026, 3)] == 1
    assert sum(by_month.values()) == 3
    assert [(m.year, m.month) for m in trend] == sorted(by_month)


@pytest.mark.asyncio
async def test_recommendations_follow_affinity(db, seller, other_seller, make_product, clock):
    # The seller lists watches; other sellers' watches are recommended.
    await make_product(category="Watches", brand="Omega")
    match = await make_product(seller_id=other_seller.id, category="Watches", brand="Seiko")
    await make_product(seller_id=other_seller.id, category="Books", brand="Penguin", view_count=100)

    picks = await CatalogAnalytics(db, "Retail", clock=clock).recommendations(seller.id)
    assert [v.product.id for v in picks] == [match.id]


@pytest.mark.asyncio
async def test_recommendations_fall_back_to_popular(db, buyer, make_product, clock):
    low = await make_product(view_count=1)
    high = await make_product(view_count=10)

    analytics = CatalogAnalytics(db, "Retail", clock=clock)
    assert [v.product.id for v in await analytics.recommendations(buyer.id)] == [high.id, low.id]
    assert [v.product.id for v in await analytics.recommendations(None, limit=1)] == [high.id]


@pytest.mark.asyncio
async def test_seller_analytics_counts_every_status(db, seller, make_product, clock):
    await make_product(price=Decimal("100"), discount=Decimal("10"), view_count=4)
    await make_product(price=Decimal("300"), discount=Decimal("30"), status="pending_review", is_active=False)
    await make_product("Auction")

    result = await CatalogAnalytics(db, "Retail", clock=clock).seller_analytics(seller.id)
    assert result.overview.total_products == 2
    assert result.overview.active_products == 1
    assert result.overview.total_views == 4
    assert result.overview.average_price == Decimal("200.00")
    assert result.overview.average_discount == Decimal("20.00")
    assert {s.status: s.count for s in result.by_status} == {"active": 1, "pending_review": 1}
    assert len(result.monthly_trend) == 12


@pytest.mark.asyncio
async def test_dashboard_extras_per_variant(db, seller, make_product, clock):
    await make_product(category="Art")
    await make_product("Auction")
    await make_product("Anti-Piece", condition="Good")

    retail = await CatalogAnalytics(db, "Retail", clock=clock).dashboard(seller.id)
    assert retail.overview.total_products == 1
    assert retail.overview.seller_products == 1
    assert set(retail.extras) == {"top_categories", "price_distribution"}
    assert len(retail.recent_products) == 1

    auction = await CatalogAnalytics(db, "Auction", clock=clock).dashboard(seller.id)
    assert set(auction.extras) == {"live_auctions"}
    assert len(auction.extras["live_auctions"]) == 1

    anti = await CatalogAnalytics(db, "Anti-Piece", clock=clock).dashboard(seller.id)
    assert set(anti.extras) == {"vintage_items"}
    assert len(anti.extras["vintage_items"]) == 1
