"""Seller write path: create, edit and delete listings.

Enforces the variant field rules at write time so that every stored row can
be turned into listing terms by :func:`royalbid.services.variants.terms_of`.
New listings always start as ``pending_review`` and inactive; approval is
handled by the moderation service, not here.
"""

import logging
import secrets
import string
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from royalbid.exceptions import InvalidListing, PermissionDenied, ProductNotFound
from royalbid.models import AuctionType, Product, ProductStatus, User
from royalbid.services.catalog import (
    MAX_PAGE_SIZE,
    CatalogPage,
    Clock,
    Pagination,
    parse_product_id,
    utcnow,
    validate_page,
)
from royalbid.services.variants import ProductView, as_utc, view_of

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase

AUCTION_FIELDS = ("starting_bid", "auction_end_date")
STOCK_FIELDS = ("price", "stocks")
DEFAULT_ANTI_PIECE_STOCKS = 1

EDITABLE_FIELDS = frozenset({
    "title", "description", "category", "condition", "brand", "model",
    "authenticity", "tags", "images", "price", "stocks", "discount",
    "starting_bid", "auction_end_date",
})
NON_NULLABLE_FIELDS = frozenset({
    "title", "description", "category", "condition", "authenticity", "tags", "images",
})


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_sku(now: datetime) -> str:
    """``PRD-<base36 millisecond timestamp>-<5 random base36 chars>``."""
    stamp = to_base36(int(now.timestamp() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"PRD-{stamp}-{suffix}"


def normalize_images(images: list[dict] | None) -> list[dict]:
    """Keep exactly one primary image, defaulting to the first."""
    images = [dict(image) for image in images or []]
    if not images:
        return images
    primary = next((i for i, image in enumerate(images) if image.get("is_primary")), 0)
    for i, image in enumerate(images):
        image["is_primary"] = i == primary
        image.setdefault("alt_text", None)
    return images


def validate_terms(
    variant: AuctionType,
    values: dict[str, Any],
    now: datetime,
    *,
    check_end_date: bool = True,
) -> dict[str, Any]:
    """Check the variant field rules and return *values* with defaults filled.

    Raises ``InvalidListing`` when a required field is missing, a field of
    another variant is set, or an auction deadline is not in the future.
    """
    values = dict(values)

    if variant is AuctionType.AUCTION:
        if values.get("starting_bid") is None:
            raise InvalidListing("Starting bid is required for auction products")
        if values.get("auction_end_date") is None:
            raise InvalidListing("Auction end date is required for auction products")
        if check_end_date and as_utc(values["auction_end_date"]) <= as_utc(now):
            raise InvalidListing("Auction end date must be in the future")
        if Decimal(str(values.get("discount") or 0)) != 0:
            raise InvalidListing("Auction products cannot be discounted")
        for name in STOCK_FIELDS:
            if values.get(name) is not None:
                raise InvalidListing(f"{name} is not allowed on auction products")
        values["discount"] = Decimal("0")
        return values

    for name in AUCTION_FIELDS:
        if values.get(name) is not None:
            raise InvalidListing(f"{name} is only allowed on auction products")
    if values.get("price") is None:
        raise InvalidListing(f"Price is required for {variant.value} products")
    if values.get("stocks") is None:
        if variant is AuctionType.RETAIL:
            raise InvalidListing("Stock quantity is required for Retail products")
        values["stocks"] = DEFAULT_ANTI_PIECE_STOCKS
    values["discount"] = values.get("discount") or Decimal("0")
    return values


class ProductEditor:
    """Write operations on listings, scoped to the acting user."""

    def __init__(self, session: AsyncSession, *, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    async def _load(self, raw_id: str | uuid.UUID) -> Product:
        product = await self.session.get(Product, parse_product_id(raw_id))
        if product is None:
            raise ProductNotFound()
        return product

    @staticmethod
    def _can_manage(user: User | None, product: Product) -> bool:
        return user is not None and (user.is_admin or product.seller_id == user.id)

    def _view(self, product: Product) -> ProductView:
        return view_of(product, product.auction_type, self.clock())

    async def create(self, seller: User, data: dict[str, Any]) -> ProductView:
        if not seller.can_sell:
            raise PermissionDenied("Only sellers can create products")

        now = self.clock()
        data = dict(data)
        variant = AuctionType(data.pop("auction_type"))
        data = validate_terms(variant, data, now)

        product = Product(
            seller_id=seller.id,
            auction_type=variant.value,
            sku=data.pop("sku", None) or generate_sku(now),
            images=normalize_images(data.pop("images", None)),
            tags=data.pop("tags", None) or [],
            status=ProductStatus.PENDING_REVIEW.value,
            is_active=False,
            is_featured=False,
            view_count=0,
            created_at=now,
            updated_at=now,
            **{k: v for k, v in data.items() if k in EDITABLE_FIELDS},
        )
        self.session.add(product)
        await self.session.flush()
        await self.session.refresh(product)

        logger.info(
            "Created %s product %s (%s) for seller %s",
            variant.value, product.id, product.sku, seller.id,
        )
        return self._view(product)

    async def update(self, user: User, raw_id: str | uuid.UUID, changes: dict[str, Any]) -> ProductView:
        product = await self._load(raw_id)
        if not self._can_manage(user, product):
            raise PermissionDenied("You can only edit your own products")
        if "auction_type" in changes:
            raise InvalidListing("auction_type cannot be changed after creation")

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise InvalidListing(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        cleared = sorted(name for name in NON_NULLABLE_FIELDS & set(changes) if changes[name] is None)
        if cleared:
            raise InvalidListing(f"Fields cannot be cleared: {', '.join(cleared)}")

        variant = AuctionType(product.auction_type)
        current = {name: getattr(product, name) for name in (*AUCTION_FIELDS, *STOCK_FIELDS, "discount")}
        merged = validate_terms(
            variant,
            {**current, **changes},
            self.clock(),
            check_end_date="auction_end_date" in changes,
        )

        for name in changes:
            value = merged[name]
            if name == "images":
                value = normalize_images(value)
            setattr(product, name, value)
        product.updated_at = self.clock()

        await self.session.flush()
        await self.session.refresh(product)
        logger.info("Updated product %s: %s", product.id, ", ".join(sorted(changes)))
        return self._view(product)

    async def delete(self, user: User, raw_id: str | uuid.UUID) -> None:
        product = await self._load(raw_id)
        if not self._can_manage(user, product):
            raise PermissionDenied("You can only delete your own products")
        product_id = product.id
        await self.session.delete(product)
        await self.session.flush()
        logger.info("Deleted product %s by user %s", product_id, user.id)

    async def get_for_owner(self, user: User | None, raw_id: str | uuid.UUID) -> ProductView:
        """Owners and admins see any status; everyone else only public listings."""
        product = await self._load(raw_id)
        if not product.is_public and not self._can_manage(user, product):
            raise ProductNotFound()
        return self._view(product)

    async def seller_products(
        self,
        seller: User,
        page: int = 1,
        limit: int = 12,
        status: ProductStatus | str | None = None,
        variant: AuctionType | str | None = None,
    ) -> CatalogPage:
        """A seller's own listings of every variant and status, newest first."""
        validate_page(page, limit, MAX_PAGE_SIZE)

        clauses = [Product.seller_id == seller.id]
        if status is not None:
            clauses.append(Product.status == ProductStatus(status).value)
        if variant is not None:
            clauses.append(Product.auction_type == AuctionType(variant).value)

        total = (
            await self.session.execute(select(func.count(Product.id)).where(*clauses))
        ).scalar_one()
        pagination = Pagination.build(page, limit, total)

        result = await self.session.execute(
            select(Product)
            .where(*clauses)
            .order_by(Product.created_at.desc(), Product.id.asc())
            .offset(pagination.offset)
            .limit(limit)
        )
        now = self.clock()
        items = [view_of(p, p.auction_type, now) for p in result.scalars().all()]
        return CatalogPage(items=items, pagination=pagination)
