# ecom_insights/storage/catalog_store.py

"""Catalog store interface and backend selection.

Two interchangeable backends implement :class:`CatalogStore`:
:class:`~ecom_insights.storage.sqlite_store.SqliteCatalogStore`
(durable) and
:class:`~ecom_insights.storage.memory_store.MemoryCatalogStore`
(volatile).  :func:`create_store` picks one once at process wiring
time; dependents receive the instance through their constructor.

Shared contract:

* Store order is insertion order; updates never move a product.
* Absence is ``None`` (or an empty list), never an exception.
* ``create`` raises :class:`DuplicateProductError` on an existing id.
* ``upsert_batch`` is one unit of work: all rows land, or none do.
* Backend faults raise :class:`StorageUnavailable` immediately.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import datetime
from types import TracebackType
from typing import Any

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_filter import ProductFilters
from ecom_insights.models.analytics import AnalyticsRecord
from ecom_insights.models.product import (
    FIELD_TYPES,
    PRODUCT_FIELDS,
    Product,
    check_value,
)

logger = logging.getLogger("ecom_insights.storage")

SQLITE_URL_PREFIX = "sqlite:///"


def check_field(field: str) -> None:
    """Reject names that are not :class:`Product` fields."""
    if field not in PRODUCT_FIELDS:
        msg = f"Unknown product field: {field!r}"
        raise ValueError(msg)


def check_field_value(field: str, value: object) -> object:
    """Validate a lookup value against *field*'s declared type.

    Returns the value normalised the way the model stores it, so both
    backends compare like with like.  ``None`` passes through.
    """
    check_field(field)
    if value is None:
        return None
    return check_value(field, value, FIELD_TYPES[field])


def merge_fields(product: Product, fields: Mapping[str, Any]) -> Product:
    """Return *product* with *fields* applied (re-validated)."""
    for name in fields:
        check_field(name)
    new_id = fields.get("product_id", product.product_id)
    if new_id != product.product_id:
        msg = "product_id cannot be changed by an update"
        raise ValueError(msg)
    return dataclasses.replace(product, **fields)


def dedupe_batch(products: Sequence[Product]) -> list[Product]:
    """Collapse repeated ids within one batch; the last row wins."""
    latest: dict[str, Product] = {}
    for product in products:
        latest.pop(product.product_id, None)
        latest[product.product_id] = product
    return list(latest.values())


class CatalogStore(ABC):
    """Read/write/query contract shared by both catalog backends."""

    # ── Products: reads ──────────────────────────────────

    @abstractmethod
    def get(self, product_id: str) -> Product | None:
        """Look up one product by identifier."""

    @abstractmethod
    def get_by_field(self, field: str, value: object) -> Product | None:
        """Return the first product (store order) whose *field* equals *value*."""

    @abstractmethod
    def list_products(
        self,
        limit: int = Settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        filters: ProductFilters | None = None,
    ) -> list[Product]:
        """Return one filtered page of products."""

    @abstractmethod
    def search(self, query: str) -> list[Product]:
        """Case-insensitive substring match on title or category."""

    @abstractmethod
    def products_by_category(self, category: str) -> list[Product]:
        """Return every product in *category* (exact match)."""

    @abstractmethod
    def scan(self) -> list[Product]:
        """Return a consistent snapshot of every product."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored products."""

    # ── Products: writes ─────────────────────────────────

    @abstractmethod
    def create(self, product: Product) -> Product:
        """Insert a new product; raise on an existing identifier."""

    @abstractmethod
    def upsert_batch(self, products: Sequence[Product]) -> int:
        """Insert-or-update every product atomically; return rows written."""

    @abstractmethod
    def update(
        self, product_id: str, fields: Mapping[str, Any],
    ) -> Product | None:
        """Merge *fields* into an existing product; ``None`` if absent."""

    # ── Analytics ────────────────────────────────────────

    @abstractmethod
    def add_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        """Store one analytics record (replacing any with the same id)."""

    @abstractmethod
    def add_analytics_batch(self, records: Sequence[AnalyticsRecord]) -> int:
        """Store analytics records atomically; return rows written."""

    @abstractmethod
    def get_analytics(
        self,
        product_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnalyticsRecord]:
        """Return analytics in date order, with inclusive date bounds."""

    # ── Lifecycle ────────────────────────────────────────

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def create_store(
    database_url: str | None = None,
    timeout: float | None = None,
) -> CatalogStore:
    """Build the catalog backend named by *database_url*.

    An empty URL selects the volatile in-memory store.
    ``sqlite:///<path>`` (or ``sqlite:///:memory:``) selects the
    persistent store.  Any other scheme is rejected.
    """
    from ecom_insights.storage.memory_store import MemoryCatalogStore
    from ecom_insights.storage.sqlite_store import SqliteCatalogStore

    url = (database_url if database_url is not None
           else Settings.DATABASE_URL).strip()
    if not url:
        logger.info("No DATABASE_URL configured — using in-memory store")
        return MemoryCatalogStore()

    if not url.startswith(SQLITE_URL_PREFIX):
        msg = f"Unsupported DATABASE_URL scheme: {url.split(':', 1)[0]}"
        raise ValueError(msg)

    path = url[len(SQLITE_URL_PREFIX):]
    if not path:
        msg = "DATABASE_URL is missing a database path"
        raise ValueError(msg)
    logger.info("DATABASE_URL found — using SQLite store at %s", path)
    return SqliteCatalogStore(
        path, timeout=timeout if timeout is not None else Settings.DB_TIMEOUT,
    )
