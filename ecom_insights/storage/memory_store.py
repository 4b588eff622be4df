# ecom_insights/storage/memory_store.py

"""Volatile in-process catalog store for environments without a database."""

import logging
import threading
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_filter import ProductFilters, check_page
from ecom_insights.models.analytics import AnalyticsRecord
from ecom_insights.models.errors import DuplicateProductError
from ecom_insights.models.product import Product, as_naive_utc
from ecom_insights.storage.catalog_store import (
    CatalogStore,
    check_field_value,
    dedupe_batch,
    merge_fields,
)

logger = logging.getLogger("ecom_insights.storage.memory")


class MemoryCatalogStore(CatalogStore):
    """Dict-backed catalog store.

    Every write, including a whole batch, runs inside one critical
    section.  Reads copy a snapshot under the lock and filter outside
    it, so a reader never sees half of a batch and never holds the
    lock for longer than the copy.  Products are immutable, so the
    snapshot can share them safely.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._products: dict[str, Product] = {}
        self._analytics: dict[str, AnalyticsRecord] = {}
        logger.debug("MemoryCatalogStore initialised")

    # ── Snapshots ────────────────────────────────────────

    def scan(self) -> list[Product]:
        with self._lock:
            return list(self._products.values())

    def _analytics_snapshot(self) -> list[AnalyticsRecord]:
        with self._lock:
            return list(self._analytics.values())

    def _located_ids(self, location: str) -> frozenset[str]:
        return frozenset(
            r.product_id
            for r in self._analytics_snapshot()
            if r.location == location
        )

    # ── Products: reads ──────────────────────────────────

    def get(self, product_id: str) -> Product | None:
        with self._lock:
            return self._products.get(product_id)

    def get_by_field(self, field: str, value: object) -> Product | None:
        value = check_field_value(field, value)
        for product in self.scan():
            if getattr(product, field) == value:
                return product
        return None

    def list_products(
        self,
        limit: int = Settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        filters: ProductFilters | None = None,
    ) -> list[Product]:
        limit = check_page(limit, offset)
        filters = filters or ProductFilters()
        located = (
            self._located_ids(filters.location)
            if filters.location is not None
            else None
        )
        matched = filters.apply(self.scan(), located)
        return matched[offset:offset + limit]

    def search(self, query: str) -> list[Product]:
        needle = query.casefold()
        return [
            p
            for p in self.scan()
            if needle in p.title.casefold()
            or needle in p.category.casefold()
        ]

    def products_by_category(self, category: str) -> list[Product]:
        return [p for p in self.scan() if p.category == category]

    def count(self) -> int:
        with self._lock:
            return len(self._products)

    # ── Products: writes ─────────────────────────────────

    def create(self, product: Product) -> Product:
        with self._lock:
            if product.product_id in self._products:
                raise DuplicateProductError(product.product_id)
            self._products[product.product_id] = product
        logger.debug("Created product %s", product.product_id)
        return product

    def upsert_batch(self, products: Sequence[Product]) -> int:
        batch = dedupe_batch(products)
        with self._lock:
            inserted = sum(
                1 for p in batch if p.product_id not in self._products
            )
            for product in batch:
                self._products[product.product_id] = product
        logger.info(
            "Upserted %d products (%d inserted, %d updated)",
            len(batch),
            inserted,
            len(batch) - inserted,
        )
        return len(batch)

    def update(
        self, product_id: str, fields: Mapping[str, Any],
    ) -> Product | None:
        with self._lock:
            current = self._products.get(product_id)
            if current is None:
                return None
            updated = merge_fields(current, fields)
            self._products[product_id] = updated
        logger.debug(
            "Updated product %s fields=%s", product_id, sorted(fields),
        )
        return updated

    # ── Analytics ────────────────────────────────────────

    def add_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        with self._lock:
            self._analytics[record.id] = record
        return record

    def add_analytics_batch(self, records: Sequence[AnalyticsRecord]) -> int:
        with self._lock:
            for record in records:
                self._analytics[record.id] = record
        logger.info("Stored %d analytics records", len(records))
        return len(records)

    def get_analytics(
        self,
        product_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnalyticsRecord]:
        start = as_naive_utc(start) if start is not None else None
        end = as_naive_utc(end) if end is not None else None
        records = [
            r
            for r in self._analytics_snapshot()
            if (product_id is None or r.product_id == product_id)
            and (start is None or r.date >= start)
            and (end is None or r.date <= end)
        ]
        return sorted(records, key=lambda r: r.date)
