"""Tests for catalog query construction."""

from decimal import Decimal

import pytest

from royalbid.exceptions import InvalidPriceRange, SearchQueryTooShort, ValidationError
from royalbid.models import AuctionType, Product
from royalbid.services.query_builder import (
    CatalogFilters,
    SortKey,
    build_query,
    normalize_search,
    order_by_for,
    price_column,
    resolve_sort,
)


class TestSearchNormalization:
    def test_missing_or_empty_means_no_search(self):
        assert normalize_search(None) is None
        assert normalize_search("") is None

    def test_trimmed_single_character_rejected(self):
        with pytest.raises(SearchQueryTooShort) as exc:
            normalize_search("  a ")
        assert exc.value.message == "Search query must be at least 2 characters long"

    def test_whitespace_only_rejected(self):
        with pytest.raises(SearchQueryTooShort):
            normalize_search("   ")

    def test_two_characters_accepted(self):
        assert normalize_search(" ab ") == "ab"


class TestSortResolution:
    def test_default_is_newest(self):
        assert resolve_sort(None, "Retail") is SortKey.NEWEST

    def test_unknown_key_falls_back(self):
        assert resolve_sort("cheapest-first", "Retail") is SortKey.NEWEST

    def test_ending_soon_only_for_auctions(self):
        assert resolve_sort("ending_soon", "Auction") is SortKey.ENDING_SOON
        assert resolve_sort("ending_soon", "Retail") is SortKey.NEWEST

    def test_every_order_ends_with_id_tiebreak(self):
        for key in SortKey:
            clauses = order_by_for(key, AuctionType.AUCTION)
            assert str(clauses[-1]) == str(Product.id.asc())


class TestBuildQuery:
    def test_price_column_per_variant(self):
        assert price_column("Retail") is Product.price
        assert price_column("Anti-Piece") is Product.price
        assert price_column("Auction") is Product.starting_bid

    def test_no_filters_only_partition(self):
        query = build_query("Retail")
        assert query.clauses == []
        assert query.sort is SortKey.NEWEST
        assert query.search is None

    def test_filters_become_clauses(self):
        filters = CatalogFilters(
            category="Watches",
            condition="Like New",
            brand=" omega ",
            min_price=Decimal("10"),
            max_price=Decimal("500"),
            search="  speed ",
            sort="price_desc",
        )
        query = build_query("Retail", filters)
        assert len(query.clauses) == 6
        assert query.search == "speed"
        assert query.sort is SortKey.PRICE_DESC

    def test_inverted_price_range_rejected(self):
        with pytest.raises(InvalidPriceRange):
            build_query("Retail", CatalogFilters(min_price=Decimal("50"), max_price=Decimal("10")))

    def test_equal_price_bounds_accepted(self):
        query = build_query("Retail", CatalogFilters(min_price=Decimal("50"), max_price=Decimal("50")))
        assert len(query.clauses) == 2

    def test_unknown_category_is_a_validation_error(self):
        with pytest.raises(ValidationError, match="Invalid category"):
            build_query("Retail", CatalogFilters(category="Spaceships"))

    def test_unknown_condition_is_a_validation_error(self):
        with pytest.raises(ValidationError, match="Invalid condition"):
            build_query("Retail", CatalogFilters(condition="Mint"))

    def test_where_returns_a_copy(self):
        base = build_query("Auction")
        narrowed = base.where(Product.is_featured.is_(True))
        assert base.clauses == []
        assert len(narrowed.clauses) == 1
        assert narrowed.variant is AuctionType.AUCTION

    def test_statement_is_scoped_to_variant(self):
        sql = str(build_query("Anti-Piece").statement())
        assert "products.auction_type" in sql
        assert "products.status" in sql
        assert "products.is_active" in sql
