"""Variant rules and read-time derivation.

Every listing belongs to exactly one variant (Retail, Auction, Anti-Piece).
This module turns the flat ``Product`` row into a tagged set of listing
terms and computes the presentation fields that depend on them: effective
price, auction status, time remaining and the vintage label. Nothing here
touches the database and nothing is ever written back to the row, so a
discount change or the passing of an auction deadline is reflected on the
very next read.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from royalbid.exceptions import InvariantViolation
from royalbid.models import AuctionType, Product

VINTAGE_LABEL = "Vintage"
EXPIRED_LABEL = "Expired"

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")
_CENT = Decimal("0.01")


class AuctionStatus(str, enum.Enum):
    LIVE = "live"
    ENDED = "ended"


# ---------------------------------------------------------------------------
# Per-variant rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VariantRules:
    """Static behaviour of one catalog variant."""

    auction_type: AuctionType
    slug: str
    noun: str
    price_field: str
    discountable: bool
    timed: bool
    related_limit: int


VARIANT_RULES: dict[AuctionType, VariantRules] = {
    AuctionType.RETAIL: VariantRules(
        auction_type=AuctionType.RETAIL,
        slug="retail",
        noun="Retail product",
        price_field="price",
        discountable=True,
        timed=False,
        related_limit=6,
    ),
    AuctionType.AUCTION: VariantRules(
        auction_type=AuctionType.AUCTION,
        slug="auction",
        noun="Auction product",
        price_field="starting_bid",
        discountable=False,
        timed=True,
        related_limit=4,
    ),
    AuctionType.ANTI_PIECE: VariantRules(
        auction_type=AuctionType.ANTI_PIECE,
        slug="anti-pieces",
        noun="Anti-pieces product",
        price_field="price",
        discountable=True,
        timed=False,
        related_limit=4,
    ),
}


def rules_for(variant: AuctionType | str) -> VariantRules:
    return VARIANT_RULES[AuctionType(variant)]


# ---------------------------------------------------------------------------
# Listing terms (tagged union)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RetailTerms:
    price: Decimal
    discount: Decimal
    stocks: int


@dataclass(frozen=True, slots=True)
class AuctionTerms:
    starting_bid: Decimal
    auction_end_date: datetime


@dataclass(frozen=True, slots=True)
class AntiPieceTerms:
    price: Decimal
    discount: Decimal
    stocks: int


ListingTerms = Union[RetailTerms, AuctionTerms, AntiPieceTerms]


def _decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    """Normalise a stored or aggregated amount to cents; ``None`` becomes 0."""
    if value is None:
        return Decimal("0.00")
    return _decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops the offset) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def terms_of(product: Product) -> ListingTerms:
    """Build the variant terms of *product* by dispatching on its tag."""
    variant = AuctionType(product.auction_type)

    if variant is AuctionType.AUCTION:
        if product.starting_bid is None or product.auction_end_date is None:
            raise InvariantViolation(
                f"Auction product {product.id} is missing starting_bid or auction_end_date"
            )
        return AuctionTerms(
            starting_bid=_decimal(product.starting_bid),
            auction_end_date=as_utc(product.auction_end_date),
        )

    if product.price is None:
        raise InvariantViolation(f"{variant.value} product {product.id} has no price")
    discount = _decimal(product.discount or 0)
    stocks = product.stocks or 0
    if variant is AuctionType.RETAIL:
        return RetailTerms(price=_decimal(product.price), discount=discount, stocks=stocks)
    return AntiPieceTerms(price=_decimal(product.price), discount=discount, stocks=stocks)


# ---------------------------------------------------------------------------
# Pure derivations
# ---------------------------------------------------------------------------


def apply_discount(base: Decimal, discount: Decimal) -> Decimal:
    """Return *base* reduced by *discount* percent.

    The discount is clamped to [0, 100] so the result is never negative.
    """
    discount = min(max(discount, _ZERO), _HUNDRED)
    if discount > 0:
        return base * (_HUNDRED - discount) / _HUNDRED
    return base


def effective_price(terms: ListingTerms) -> Decimal:
    if isinstance(terms, AuctionTerms):
        return terms.starting_bid
    return apply_discount(terms.price, terms.discount)


def auction_status(end: datetime, now: datetime) -> AuctionStatus:
    return AuctionStatus.LIVE if as_utc(end) > as_utc(now) else AuctionStatus.ENDED


def time_remaining(end: datetime, now: datetime) -> timedelta:
    return max(timedelta(0), as_utc(end) - as_utc(now))


def format_time_left(remaining: timedelta) -> str:
    """Coarse countdown label: ``2d 3h``, ``2h 0m``, ``45m 10s``, ``9s``."""
    total = int(remaining.total_seconds())
    if total <= 0:
        return EXPIRED_LABEL

    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


@dataclass(frozen=True, slots=True)
class DerivedFields:
    effective_price: Decimal
    auction_status: AuctionStatus | None = None
    time_left: int | None = None
    time_left_display: str | None = None
    age: str | None = None


@dataclass(frozen=True, slots=True)
class ProductView:
    """A stored product paired with the fields derived for this read."""

    product: Product
    derived: DerivedFields


def derive(
    product: Product,
    variant: AuctionType | str,
    now: datetime | None = None,
) -> DerivedFields:
    """Compute the read-time fields of *product* in the *variant* context.

    Raises ``InvariantViolation`` when the product belongs to another
    variant; callers must scope their queries by ``auction_type`` first.
    """
    variant = AuctionType(variant)
    if product.auction_type != variant.value:
        raise InvariantViolation(
            f"Product {product.id} is a {product.auction_type} listing, "
            f"not {variant.value}"
        )

    now = now or datetime.now(timezone.utc)
    terms = terms_of(product)
    price = effective_price(terms)

    if isinstance(terms, AuctionTerms):
        remaining = time_remaining(terms.auction_end_date, now)
        return DerivedFields(
            effective_price=price,
            auction_status=auction_status(terms.auction_end_date, now),
            time_left=int(remaining.total_seconds()),
            time_left_display=format_time_left(remaining),
        )
    if isinstance(terms, AntiPieceTerms):
        return DerivedFields(effective_price=price, age=VINTAGE_LABEL)
    return DerivedFields(effective_price=price)


def view_of(product: Product, variant: AuctionType | str, now: datetime | None = None) -> ProductView:
    return ProductView(product=product, derived=derive(product, variant, now))
