# ecom_insights/filters/product_filter.py

"""Typed product filter options and wire query-parameter parsing."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_validator import to_float, to_int
from ecom_insights.models.errors import ValidationError
from ecom_insights.models.product import Product

logger = logging.getLogger("ecom_insights.filters")


@dataclass(frozen=True)
class ProductFilters:
    """Closed set of listing predicates, AND-composed.

    Every predicate is optional; ``None`` means "do not filter".
    Price and rating bounds are inclusive.  ``location`` matches
    products with at least one analytics record at that location.
    """

    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    location: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.category,
                self.min_price,
                self.max_price,
                self.min_rating,
                self.location,
            )
        )

    def matches(
        self,
        product: Product,
        located_ids: frozenset[str] | None = None,
    ) -> bool:
        """Return ``True`` when *product* satisfies every predicate.

        *located_ids* is the set of product ids associated with
        :attr:`location`; it is required whenever ``location`` is set.
        """
        if self.category is not None and product.category != self.category:
            return False
        if self.min_price is not None and product.price < self.min_price:
            return False
        if self.max_price is not None and product.price > self.max_price:
            return False
        if self.min_rating is not None and product.rating < self.min_rating:
            return False
        if self.location is not None:
            if located_ids is None:
                msg = "located_ids is required for a location filter"
                raise ValueError(msg)
            if product.product_id not in located_ids:
                return False
        return True

    def apply(
        self,
        products: Iterable[Product],
        located_ids: frozenset[str] | None = None,
    ) -> list[Product]:
        """Filter *products*, preserving their order."""
        if self.is_empty:
            return list(products)
        return [p for p in products if self.matches(p, located_ids)]


@dataclass(frozen=True)
class ProductQuery:
    """A parsed listing/search request."""

    limit: int = Settings.DEFAULT_PAGE_LIMIT
    offset: int = 0
    filters: ProductFilters = field(default_factory=ProductFilters)
    search: str | None = None


def check_page(limit: int, offset: int) -> int:
    """Validate pagination bounds and return the effective limit."""
    if limit < 0:
        msg = f"limit must be non-negative (got {limit})"
        raise ValueError(msg)
    if offset < 0:
        msg = f"offset must be non-negative (got {offset})"
        raise ValueError(msg)
    if limit > Settings.MAX_PAGE_LIMIT:
        logger.debug(
            "Capping limit %d to %d", limit, Settings.MAX_PAGE_LIMIT,
        )
        return Settings.MAX_PAGE_LIMIT
    return limit


def _param(params: Mapping[str, str], name: str) -> str | None:
    value = params.get(name)
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def parse_query_params(params: Mapping[str, str]) -> ProductQuery:
    """Parse string-encoded wire parameters into a :class:`ProductQuery`.

    Recognised keys: ``limit``, ``offset``, ``category``, ``minPrice``,
    ``maxPrice``, ``minRating``, ``location`` and ``q``.  Blank values
    count as absent; anything else is ignored.

    Raises:
        ValidationError: a numeric parameter is malformed or negative.
    """

    def number(name: str) -> float | None:
        raw = _param(params, name)
        return None if raw is None else to_float(raw, name)

    def count(name: str, default: int) -> int:
        raw = _param(params, name)
        value = default if raw is None else to_int(raw, name)
        if value < 0:
            raise ValidationError(f"{name} must be non-negative", name)
        return value

    filters = ProductFilters(
        category=_param(params, "category"),
        min_price=number("minPrice"),
        max_price=number("maxPrice"),
        min_rating=number("minRating"),
        location=_param(params, "location"),
    )
    return ProductQuery(
        limit=count("limit", Settings.DEFAULT_PAGE_LIMIT),
        offset=count("offset", 0),
        filters=filters,
        search=_param(params, "q"),
    )
