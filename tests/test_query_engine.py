# tests/test_query_engine.py

"""Tests for QueryEngine listings and search."""

import unittest

from ecom_insights.filters.product_filter import (
    ProductFilters,
    ProductQuery,
    parse_query_params,
)
from ecom_insights.services.query_engine import QueryEngine

from helpers import MemoryBackend, SqliteBackend, make_product, make_record


class QueryEngineCases:
    """QueryEngine listings, search and run."""

    def setUp(self) -> None:
        self.store = self.make_store()
        self.store.upsert_batch([
            make_product("A", title="Gaming Mouse", price=40.0),
            make_product("B", title="Office Chair", category="Furniture",
                         price=250.0),
            make_product("C", title="Mouse Pad", price=10.0, rating=3.0),
            make_product("D", title="Standing Desk", category="Furniture",
                         price=600.0),
        ])
        self.engine = QueryEngine(self.store)

    def _ids(self, products: list) -> list[str]:
        return [p.product_id for p in products]

    def test_list_products_with_filters(self) -> None:
        products = self.engine.list_products(
            filters=ProductFilters(category="Furniture", max_price=300.0),
        )
        self.assertEqual(self._ids(products), ["B"])

    def test_list_negative_offset(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.list_products(offset=-1)

    def test_search_keeps_store_order(self) -> None:
        self.assertEqual(self._ids(self.engine.search("MOUSE")), ["A", "C"])

    def test_search_matches_category(self) -> None:
        self.assertEqual(self._ids(self.engine.search("furn")), ["B", "D"])

    def test_blank_search_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.search("   ")

    def test_products_by_category_and_count(self) -> None:
        self.assertEqual(
            self._ids(self.engine.products_by_category("Furniture")),
            ["B", "D"],
        )
        self.assertEqual(self.engine.count(), 4)

    def test_run_plain_listing(self) -> None:
        query = parse_query_params({"limit": "2", "offset": "1"})
        self.assertEqual(self._ids(self.engine.run(query)), ["B", "C"])

    def test_run_search_with_filters_and_page(self) -> None:
        query = parse_query_params({"q": "mouse", "minRating": "3.5"})
        self.assertEqual(self._ids(self.engine.run(query)), ["A"])

        query = ProductQuery(limit=1, offset=1, search="mouse")
        self.assertEqual(self._ids(self.engine.run(query)), ["C"])

    def test_run_search_with_location(self) -> None:
        self.store.add_analytics(make_record("C", location="Sharjah"))
        query = parse_query_params({"q": "mouse", "location": "Sharjah"})
        self.assertEqual(self._ids(self.engine.run(query)), ["C"])


class TestMemoryQueryEngine(MemoryBackend, QueryEngineCases, unittest.TestCase):
    """QueryEngine on the in-memory store."""


class TestSqliteQueryEngine(SqliteBackend, QueryEngineCases, unittest.TestCase):
    """QueryEngine on the SQLite store."""
