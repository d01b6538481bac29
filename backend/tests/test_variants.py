"""Tests for the variant derivation layer."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from royalbid.exceptions import InvariantViolation
from royalbid.models import Product
from royalbid.services.variants import (
    AntiPieceTerms,
    AuctionStatus,
    AuctionTerms,
    RetailTerms,
    apply_discount,
    derive,
    format_time_left,
    money,
    rules_for,
    terms_of,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _product(auction_type="Retail", **fields) -> Product:
    defaults = {
        "id": uuid.uuid4(),
        "title": "Speedmaster",
        "description": "Moonwatch",
        "category": "Watches",
        "condition": "Excellent",
        "auction_type": auction_type,
        "discount": Decimal("0"),
    }
    defaults.update(fields)
    return Product(**defaults)


class TestEffectivePrice:
    def test_no_discount_keeps_price(self):
        p = _product(price=Decimal("299.99"), stocks=3)
        assert derive(p, "Retail", NOW).effective_price == Decimal("299.99")

    def test_discount_reduces_price(self):
        p = _product(price=Decimal("299.99"), stocks=3, discount=Decimal("5"))
        price = derive(p, "Retail", NOW).effective_price
        assert price == Decimal("284.9905")
        assert money(price) == Decimal("284.99")

    def test_tiny_discount_is_still_strictly_lower(self):
        p = _product(price=Decimal("0.01"), stocks=1, discount=Decimal("0.01"))
        assert derive(p, "Retail", NOW).effective_price < Decimal("0.01")

    def test_full_discount_is_free_not_negative(self):
        assert apply_discount(Decimal("50"), Decimal("100")) == Decimal("0")
        assert apply_discount(Decimal("50"), Decimal("150")) == Decimal("0")

    def test_anti_piece_discount_and_vintage_label(self):
        p = _product("Anti-Piece", price=Decimal("200"), stocks=1, discount=Decimal("25"))
        derived = derive(p, "Anti-Piece", NOW)
        assert derived.effective_price == Decimal("150")
        assert derived.age == "Vintage"
        assert derived.auction_status is None

    def test_auction_price_is_starting_bid(self):
        p = _product("Auction", starting_bid=Decimal("500"), auction_end_date=NOW + timedelta(hours=2))
        assert derive(p, "Auction", NOW).effective_price == Decimal("500")


class TestAuctionStatus:
    def test_live_two_hours_out(self):
        p = _product("Auction", starting_bid=Decimal("500"), auction_end_date=NOW + timedelta(hours=2))
        derived = derive(p, "Auction", NOW)
        assert derived.auction_status is AuctionStatus.LIVE
        assert derived.time_left == 7200
        assert derived.time_left_display == "2h 0m"

    def test_moving_the_clock_ends_the_auction(self):
        p = _product("Auction", starting_bid=Decimal("500"), auction_end_date=NOW + timedelta(hours=2))
        later = derive(p, "Auction", NOW + timedelta(hours=3))
        assert later.auction_status is AuctionStatus.ENDED
        assert later.time_left == 0
        assert later.time_left_display == "Expired"

    def test_end_equal_to_now_is_ended(self):
        p = _product("Auction", starting_bid=Decimal("1"), auction_end_date=NOW)
        assert derive(p, "Auction", NOW).auction_status is AuctionStatus.ENDED

    def test_naive_end_date_is_read_as_utc(self):
        naive = (NOW + timedelta(minutes=5)).replace(tzinfo=None)
        p = _product("Auction", starting_bid=Decimal("1"), auction_end_date=naive)
        assert derive(p, "Auction", NOW).time_left == 300

    def test_derivation_does_not_touch_the_row(self):
        end = NOW + timedelta(hours=1)
        p = _product("Auction", starting_bid=Decimal("10"), auction_end_date=end)
        derive(p, "Auction", NOW + timedelta(days=1))
        assert p.auction_end_date == end
        assert p.starting_bid == Decimal("10")


class TestFormatTimeLeft:
    @pytest.mark.parametrize(
        "seconds, label",
        [
            (0, "Expired"),
            (9, "9s"),
            (45 * 60 + 10, "45m 10s"),
            (2 * 3600, "2h 0m"),
            (3 * 86400 + 4 * 3600 + 59, "3d 4h"),
        ],
    )
    def test_labels(self, seconds, label):
        assert format_time_left(timedelta(seconds=seconds)) == label


class TestTerms:
    def test_dispatch_on_tag(self):
        assert isinstance(terms_of(_product(price=Decimal("1"), stocks=1)), RetailTerms)
        assert isinstance(terms_of(_product("Anti-Piece", price=Decimal("1"))), AntiPieceTerms)
        auction = _product("Auction", starting_bid=Decimal("1"), auction_end_date=NOW)
        assert isinstance(terms_of(auction), AuctionTerms)

    def test_auction_without_end_date_is_an_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            terms_of(_product("Auction", starting_bid=Decimal("1")))

    def test_retail_without_price_is_an_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            terms_of(_product(stocks=1))

    def test_variant_mismatch_is_an_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            derive(_product(price=Decimal("1"), stocks=1), "Auction", NOW)


class TestRules:
    def setup_method(self):
        self.retail = rules_for("Retail")
        self.auction = rules_for("Auction")
        self.anti = rules_for("Anti-Piece")

    def test_slugs(self):
        assert (self.retail.slug, self.auction.slug, self.anti.slug) == ("retail", "auction", "anti-pieces")

    def test_related_limits(self):
        assert self.retail.related_limit == 6
        assert self.auction.related_limit == 4
        assert self.anti.related_limit == 4

    def test_only_auctions_are_timed(self):
        assert self.auction.timed and not self.auction.discountable
        assert not self.retail.timed and self.retail.discountable

    def test_unknown_variant(self):
        with pytest.raises(ValueError):
            rules_for("Barter")
