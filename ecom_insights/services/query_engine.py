# ecom_insights/services/query_engine.py

"""Filtered, paginated product listings and free-text search."""

import logging

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_filter import (
    ProductFilters,
    ProductQuery,
    check_page,
)
from ecom_insights.models.product import Product
from ecom_insights.storage.catalog_store import CatalogStore

logger = logging.getLogger("ecom_insights.query")


class QueryEngine:
    """Read-only product queries over a :class:`CatalogStore`."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def list_products(
        self,
        limit: int = Settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        filters: ProductFilters | None = None,
    ) -> list[Product]:
        """Return one page of products matching every supplied filter.

        Pagination applies after filtering.  No total is returned;
        call :meth:`count` separately when one is needed.
        """
        limit = check_page(limit, offset)
        products = self.store.list_products(limit, offset, filters)
        logger.debug(
            "Listed %d products (limit=%d, offset=%d, filters=%s)",
            len(products), limit, offset, filters,
        )
        return products

    def search(self, query: str) -> list[Product]:
        """Case-insensitive substring search on title and category.

        Results keep store order; there is no relevance ranking.
        """
        term = query.strip()
        if not term:
            msg = "Search query required"
            raise ValueError(msg)
        products = self.store.search(term)
        logger.debug("Search '%s' matched %d products", term, len(products))
        return products

    def products_by_category(self, category: str) -> list[Product]:
        return self.store.products_by_category(category)

    def count(self) -> int:
        return self.store.count()

    def run(self, query: ProductQuery) -> list[Product]:
        """Execute a parsed wire query.

        With a search term, the filters and page are applied to the
        search matches; otherwise this is a plain listing.
        """
        if query.search is None:
            return self.list_products(query.limit, query.offset, query.filters)

        limit = check_page(query.limit, query.offset)
        matches = self.search(query.search)
        filters = query.filters
        if filters.location is not None:
            located = frozenset(
                r.product_id
                for r in self.store.get_analytics()
                if r.location == filters.location
            )
        else:
            located = None
        matches = filters.apply(matches, located)
        return matches[query.offset:query.offset + limit]
