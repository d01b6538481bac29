"""Catalog listing service.

Runs :mod:`royalbid.services.query_builder` queries against the store,
paginates them and passes every row through the variant derivation layer.
One :class:`CatalogService` serves one variant partition for the duration of
a request.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Sequence

from sqlalchemy import distinct, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from royalbid.exceptions import InvalidPagination, InvalidProductId, ProductNotFound
from royalbid.models import AuctionType, Category, Condition, Product
from royalbid.services.query_builder import (
    CatalogFilters,
    CatalogQuery,
    build_query,
    partition_clauses,
    price_column,
)
from royalbid.services.variants import ProductView, money, rules_for, view_of

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
VINTAGE_CONDITIONS = (Condition.EXCELLENT.value, Condition.GOOD.value, Condition.FAIR.value)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int
    total: int
    pages: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


def validate_page(page: int, limit: int, max_limit: int = MAX_PAGE_SIZE) -> None:
    if page < 1:
        raise InvalidPagination("Page must be a positive integer")
    if limit < 1 or limit > max_limit:
        raise InvalidPagination(f"Limit must be between 1 and {max_limit}")


@dataclass(frozen=True, slots=True)
class PriceRange:
    min: Decimal = Decimal("0")
    max: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class FilterMetadata:
    """Filter options of the whole variant partition, not of the current page."""

    categories: list[str] = field(default_factory=list)
    conditions: list[str] = field(default_factory=list)
    brands: list[str] = field(default_factory=list)
    price_range: PriceRange = field(default_factory=PriceRange)


@dataclass(frozen=True, slots=True)
class CatalogPage:
    items: list[ProductView]
    pagination: Pagination
    filters: FilterMetadata | None = None
    query: str | None = None


@dataclass(frozen=True, slots=True)
class ProductDetail:
    product: ProductView
    related: list[ProductView]


def parse_product_id(raw: str | uuid.UUID, noun: str = "product") -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise InvalidProductId(noun) from None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CatalogService:
    """Read operations over one variant partition of the catalog."""

    def __init__(
        self,
        session: AsyncSession,
        variant: AuctionType | str,
        *,
        clock: Clock = utcnow,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        self.session = session
        self.variant = AuctionType(variant)
        self.rules = rules_for(self.variant)
        self.clock = clock
        self.max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _views(self, products: Sequence[Product]) -> list[ProductView]:
        now = self.clock()
        return [view_of(p, self.variant, now) for p in products]

    def _showcase_query(self) -> CatalogQuery:
        """Public showcases only surface auctions that can still be bid on."""
        query = build_query(self.variant)
        if self.rules.timed:
            query = query.where(Product.auction_end_date > self.clock())
        return query

    async def _paginate(
        self, query: CatalogQuery, page: int, limit: int, *order_by
    ) -> tuple[list[ProductView], Pagination]:
        validate_page(page, limit, self.max_page_size)

        total = (await self.session.execute(query.count_statement())).scalar_one()
        pagination = Pagination.build(page, limit, total)

        if order_by:
            stmt = query.ordered(*order_by).offset(pagination.offset).limit(limit)
        else:
            stmt = query.statement(offset=pagination.offset, limit=limit)
        result = await self.session.execute(stmt)
        return self._views(result.scalars().all()), pagination

    async def fetch(self, query: CatalogQuery, limit: int, *order_by) -> list[ProductView]:
        stmt = query.ordered(*order_by) if order_by else query.statement()
        result = await self.session.execute(stmt.limit(limit))
        return self._views(result.scalars().all())

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def list_products(
        self,
        filters: CatalogFilters | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> CatalogPage:
        query = build_query(self.variant, filters)
        items, pagination = await self._paginate(query, page, limit)
        return CatalogPage(
            items=items,
            pagination=pagination,
            filters=await self.filter_metadata(),
        )

    async def filter_metadata(self) -> FilterMetadata:
        """Distinct categories, conditions, brands and price bounds of the partition."""
        scope = partition_clauses(self.variant)

        async def _distinct(column) -> list[str]:
            result = await self.session.execute(
                select(distinct(column)).where(*scope).order_by(column)
            )
            return [value for value in result.scalars().all() if value]

        price = price_column(self.variant)
        bounds = (
            await self.session.execute(select(func.min(price), func.max(price)).where(*scope))
        ).one()

        return FilterMetadata(
            categories=await _distinct(Product.category),
            conditions=await _distinct(Product.condition),
            brands=await _distinct(Product.brand),
            price_range=PriceRange(min=money(bounds[0]), max=money(bounds[1])),
        )

    async def featured(self, limit: int = 8) -> list[ProductView]:
        query = self._showcase_query().where(Product.is_featured.is_(True))
        return await self.fetch(query, limit, Product.created_at.desc())

    async def popular(self, limit: int = 8) -> list[ProductView]:
        return await self.fetch(
            self._showcase_query(),
            limit,
            Product.view_count.desc(),
            Product.created_at.desc(),
        )

    async def recent(self, limit: int = 10) -> list[ProductView]:
        return await self.fetch(build_query(self.variant), limit, Product.created_at.desc())

    async def by_category(self, category: Category | str, page: int = 1, limit: int = 12) -> CatalogPage:
        query = build_query(self.variant, CatalogFilters(category=category))
        items, pagination = await self._paginate(query, page, limit, Product.created_at.desc())
        return CatalogPage(items=items, pagination=pagination)

    async def search(
        self,
        term: str | None,
        page: int = 1,
        limit: int = 12,
        sort: str | None = None,
    ) -> CatalogPage:
        # A search endpoint without a term is the same mistake as a short one.
        query = build_query(self.variant, CatalogFilters(search=term or " ", sort=sort))
        items, pagination = await self._paginate(query, page, limit)
        return CatalogPage(items=items, pagination=pagination, query=query.search)

    async def on_sale(self, page: int = 1, limit: int = 12) -> CatalogPage:
        if not self.rules.discountable:
            validate_page(page, limit, self.max_page_size)
            return CatalogPage(items=[], pagination=Pagination.build(page, limit, 0))

        query = build_query(self.variant).where(Product.discount > 0)
        items, pagination = await self._paginate(
            query, page, limit, Product.discount.desc(), Product.created_at.desc()
        )
        return CatalogPage(items=items, pagination=pagination)

    async def live_auctions(self, limit: int = 5) -> list[ProductView]:
        if not self.rules.timed:
            return []
        query = build_query(self.variant).where(Product.auction_end_date > self.clock())
        return await self.fetch(query, limit, Product.auction_end_date.asc())

    async def vintage_items(self, limit: int = 5) -> list[ProductView]:
        query = build_query(self.variant).where(Product.condition.in_(VINTAGE_CONDITIONS))
        return await self.fetch(query, limit, Product.created_at.desc())

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    async def get_detail(self, raw_id: str | uuid.UUID) -> ProductDetail:
        """Fetch one active product, count the view and collect related items."""
        product_id = parse_product_id(raw_id, self.rules.noun.lower())

        query = build_query(self.variant).where(Product.id == product_id)
        product = (await self.session.execute(query.statement())).scalar_one_or_none()
        if product is None:
            raise ProductNotFound(self.rules.noun)

        await self.increment_view_count(product_id)
        await self.session.refresh(product, ["view_count"])

        return ProductDetail(
            product=self._views([product])[0],
            related=await self.related(product),
        )

    async def increment_view_count(self, product_id: uuid.UUID) -> None:
        """Atomic ``view_count = view_count + 1`` at the storage layer."""
        # A view is not an edit: keep updated_at as stored.
        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(view_count=Product.view_count + 1, updated_at=Product.updated_at)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Counted view of %s product %s", self.variant.value, product_id)

    async def related(self, product: Product, limit: int | None = None) -> list[ProductView]:
        query = build_query(self.variant).where(
            Product.category == product.category,
            Product.id != product.id,
        )
        return await self.fetch(
            query, limit or self.rules.related_limit, Product.created_at.desc()
        )
