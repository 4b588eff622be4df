# tests/helpers.py

"""Record builders and store backends shared across the test modules."""

import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from ecom_insights.models.analytics import AnalyticsRecord
from ecom_insights.models.product import Product
from ecom_insights.storage.catalog_store import CatalogStore
from ecom_insights.storage.memory_store import MemoryCatalogStore
from ecom_insights.storage.sqlite_store import SqliteCatalogStore


class MemoryBackend:
    """Mixin: ``make_store`` builds a fresh in-memory store."""

    def make_store(self) -> CatalogStore:
        return MemoryCatalogStore()


class SqliteBackend:
    """Mixin: ``make_store`` builds a SQLite store in a temp directory."""

    def make_store(self) -> CatalogStore:
        assert isinstance(self, unittest.TestCase)
        tmp_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmp_dir, True)
        store = SqliteCatalogStore(Path(tmp_dir) / "catalog.db")
        self.addCleanup(store.close)
        return store


def make_product(product_id: str = "P1", **overrides: object) -> Product:
    """Create a valid Product, overriding any field by keyword."""
    values: dict[str, object] = {
        "product_id": product_id,
        "title": f"Product {product_id}",
        "category": "Electronics",
        "price": 100.0,
        "rating": 4.0,
        "profit_margin": 20.0,
        "estimated_demand": 10,
    }
    values.update(overrides)
    return Product(**values)  # type: ignore[arg-type]


def make_record(
    product_id: str = "P1",
    date: datetime = datetime(2024, 1, 15),
    **overrides: object,
) -> AnalyticsRecord:
    """Create a valid AnalyticsRecord, overriding any field by keyword."""
    values: dict[str, object] = {
        "product_id": product_id,
        "date": date,
        "sales": 5,
        "revenue": 500.0,
        "views": 100,
        "conversions": 5,
        "location": "Dubai",
    }
    values.update(overrides)
    return AnalyticsRecord(**values)  # type: ignore[arg-type]
