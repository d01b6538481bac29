"""Translate catalog filter requests into SQLAlchemy statements.

A :class:`CatalogQuery` is always scoped to one variant partition
(``auction_type = <variant> AND status = 'active' AND is_active``) and carries
the extra filter clauses plus a resolved sort order. It renders both the page
statement and the matching count statement so the two never drift apart.
"""

import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import Boolean, Select, String, and_, func, literal_column, or_, select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.elements import ColumnElement

from royalbid.exceptions import InvalidPriceRange, SearchQueryTooShort, ValidationError
from royalbid.models import AuctionType, Category, Condition, Product, ProductStatus
from royalbid.services.variants import rules_for

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


class SortKey(str, enum.Enum):
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    POPULAR = "popular"
    NEWEST = "newest"
    OLDEST = "oldest"
    ENDING_SOON = "ending_soon"
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"


DEFAULT_SORT = SortKey.NEWEST


@dataclass(slots=True)
class CatalogFilters:
    """Optional filters accepted by catalog listings."""

    category: Category | None = None
    condition: Condition | None = None
    brand: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    search: str | None = None
    sort: str | None = None


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def price_column(variant: AuctionType | str):
    """The column price filters, sorts and statistics use for *variant*."""
    return getattr(Product, rules_for(variant).price_field)


def partition_clauses(variant: AuctionType | str) -> list[ColumnElement]:
    """Public visibility scope of one variant."""
    return [
        Product.auction_type == AuctionType(variant).value,
        Product.status == ProductStatus.ACTIVE.value,
        Product.is_active.is_(True),
    ]


def normalize_search(term: str | None) -> str | None:
    """Trim a free-text query; ``None``/empty means no search.

    Raises ``SearchQueryTooShort`` when fewer than two characters remain.
    """
    if term is None or term == "":
        return None
    trimmed = term.strip()
    if len(trimmed) < MIN_SEARCH_LENGTH:
        raise SearchQueryTooShort(MIN_SEARCH_LENGTH)
    return trimmed


class tags_contain(ColumnElement):
    """True when any element of a JSON string array contains *term*.

    Elements are tested one by one, so JSON escapes and separators never match.
    """

    type = Boolean()
    inherit_cache = False

    def __init__(self, column: ColumnElement, term: str):
        self.column = column
        self.term = term


def _render_tags_contain(element, compiler, source: str, value: str, **kw) -> str:
    test = literal_column(value, String).icontains(element.term, autoescape=True)
    return "EXISTS (SELECT 1 FROM %s WHERE %s)" % (
        source % compiler.process(element.column, **kw),
        compiler.process(test, **kw),
    )


@compiles(tags_contain)
def _tags_contain_json_each(element, compiler, **kw):
    return _render_tags_contain(element, compiler, "json_each(%s)", "json_each.value", **kw)


@compiles(tags_contain, "postgresql")
def _tags_contain_pg(element, compiler, **kw):
    return _render_tags_contain(
        element, compiler, "json_array_elements_text(%s) AS tag(value)", "tag.value", **kw
    )


def search_clause(term: str) -> ColumnElement:
    """Case-insensitive literal substring match over title, description,
    brand, model and tags. ``%`` and ``_`` in *term* match themselves."""
    return or_(
        Product.title.icontains(term, autoescape=True),
        Product.description.icontains(term, autoescape=True),
        Product.brand.icontains(term, autoescape=True),
        Product.model.icontains(term, autoescape=True),
        tags_contain(Product.__table__.c.tags, term),
    )


def resolve_sort(sort: str | SortKey | None, variant: AuctionType | str) -> SortKey:
    """Map a raw sort key to a supported one, falling back to ``newest``."""
    if sort is None:
        return DEFAULT_SORT
    try:
        key = SortKey(sort)
    except ValueError:
        logger.debug("Unknown sort key %r, using %s", sort, DEFAULT_SORT.value)
        return DEFAULT_SORT
    if key is SortKey.ENDING_SOON and not rules_for(variant).timed:
        return DEFAULT_SORT
    return key


def order_by_for(key: SortKey, variant: AuctionType | str) -> list:
    price = price_column(variant)
    orders = {
        SortKey.PRICE_ASC: [price.asc()],
        SortKey.PRICE_DESC: [price.desc()],
        SortKey.POPULAR: [Product.view_count.desc(), Product.created_at.desc()],
        SortKey.NEWEST: [Product.created_at.desc()],
        SortKey.OLDEST: [Product.created_at.asc()],
        SortKey.ENDING_SOON: [Product.auction_end_date.asc()],
        SortKey.NAME_ASC: [Product.title.asc()],
        SortKey.NAME_DESC: [Product.title.desc()],
    }[key]
    # Stable pagination across equal sort values.
    return [*orders, Product.id.asc()]


# ---------------------------------------------------------------------------
# CatalogQuery
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CatalogQuery:
    variant: AuctionType
    clauses: list[ColumnElement] = field(default_factory=list)
    sort: SortKey = DEFAULT_SORT
    search: str | None = None

    @property
    def predicate(self) -> ColumnElement:
        return and_(*partition_clauses(self.variant), *self.clauses)

    @property
    def order_by(self) -> list:
        return order_by_for(self.sort, self.variant)

    def where(self, *clauses: ColumnElement) -> "CatalogQuery":
        """Return a copy narrowed by extra clauses."""
        return CatalogQuery(
            variant=self.variant,
            clauses=[*self.clauses, *clauses],
            sort=self.sort,
            search=self.search,
        )

    def ordered(self, *order_by) -> Select:
        """Select statement with a custom order instead of the sort key."""
        return select(Product).where(self.predicate).order_by(*order_by, Product.id.asc())

    def statement(self, offset: int | None = None, limit: int | None = None) -> Select:
        stmt = select(Product).where(self.predicate).order_by(*self.order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def count_statement(self) -> Select:
        return select(func.count(Product.id)).where(self.predicate)


def _member(enum_cls: type[enum.Enum], value, label: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value}") from None


def build_query(
    variant: AuctionType | str,
    filters: CatalogFilters | None = None,
) -> CatalogQuery:
    """Build the scoped query for one variant from optional *filters*."""
    variant = AuctionType(variant)
    filters = filters or CatalogFilters()
    clauses: list[ColumnElement] = []

    if filters.category is not None:
        clauses.append(Product.category == _member(Category, filters.category, "category"))

    if filters.condition is not None:
        clauses.append(Product.condition == _member(Condition, filters.condition, "condition"))

    if filters.brand:
        clauses.append(Product.brand.icontains(filters.brand.strip(), autoescape=True))

    if (
        filters.min_price is not None
        and filters.max_price is not None
        and filters.min_price > filters.max_price
    ):
        raise InvalidPriceRange(filters.min_price, filters.max_price)

    price = price_column(variant)
    if filters.min_price is not None:
        clauses.append(price >= filters.min_price)
    if filters.max_price is not None:
        clauses.append(price <= filters.max_price)

    search = normalize_search(filters.search)
    if search is not None:
        clauses.append(search_clause(search))

    sort = resolve_sort(filters.sort, variant)
    logger.debug(
        "Built %s query: %d filter clause(s), sort=%s", variant.value, len(clauses), sort.value
    )
    return CatalogQuery(variant=variant, clauses=clauses, sort=sort, search=search)
