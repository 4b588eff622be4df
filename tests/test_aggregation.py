# tests/test_aggregation.py

"""Tests for ranking views and roll-ups."""

import unittest
from datetime import datetime

from ecom_insights.services.aggregation import (
    TOP_MARGIN,
    TRENDING,
    UNDERPERFORMING,
    AggregationEngine,
)

from helpers import MemoryBackend, SqliteBackend, make_product, make_record


class RankingCases:
    """trending, top_margin and underperforming."""

    def setUp(self) -> None:
        self.store = self.make_store()
        self.store.upsert_batch([
            make_product("A", profit_margin=10.0, estimated_demand=50,
                         event_impact=0.2),
            make_product("B", profit_margin=30.0, estimated_demand=5),
            make_product("C", profit_margin=30.0, estimated_demand=5,
                         event_impact=0.9),
            make_product("D", profit_margin=25.0, estimated_demand=100),
        ])
        self.engine = AggregationEngine(self.store)

    def _ids(self, ranked: list) -> list[str]:
        return [r.product.product_id for r in ranked]

    def test_top_margin_ties_keep_store_order(self) -> None:
        ranked = self.engine.top_margin()
        self.assertEqual(self._ids(ranked), ["B", "C", "D", "A"])
        self.assertEqual([r.rank for r in ranked], [1, 2, 3, 4])
        self.assertTrue(all(r.competitive_position == TOP_MARGIN for r in ranked))

    def test_trending_missing_impact_counts_as_zero(self) -> None:
        ranked = self.engine.trending(3)
        self.assertEqual(self._ids(ranked), ["C", "A", "B"])
        self.assertEqual(ranked[0].competitive_position, TRENDING)

    def test_underperforming_lowest_demand_first(self) -> None:
        ranked = self.engine.underperforming(2)
        self.assertEqual(self._ids(ranked), ["B", "C"])
        self.assertEqual(ranked[0].competitive_position, UNDERPERFORMING)

    def test_limit_zero_and_oversized(self) -> None:
        self.assertEqual(self.engine.top_margin(0), [])
        self.assertEqual(len(self.engine.top_margin(100)), 4)

    def test_negative_limit_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.engine.trending(-1)

    def test_repeated_calls_identical(self) -> None:
        self.assertEqual(self.engine.top_margin(), self.engine.top_margin())

    def test_empty_store(self) -> None:
        engine = AggregationEngine(self.make_store())
        self.assertEqual(engine.trending(), [])


class RollUpCases:
    """category_performance and dashboard_metrics."""

    def setUp(self) -> None:
        self.store = self.make_store()
        self.store.upsert_batch([
            make_product("A", category="Books", price=10.0,
                         estimated_demand=3, profit_margin=10.0, rating=4.0),
            make_product("B", category="Books", price=20.0,
                         estimated_demand=1, profit_margin=20.0, rating=5.0),
            make_product("C", category="Toys", price=100.0,
                         estimated_demand=2, profit_margin=30.0, rating=3.0),
        ])
        self.engine = AggregationEngine(self.store)

    def test_category_performance(self) -> None:
        rows = self.engine.category_performance()
        self.assertEqual([r.category for r in rows], ["Toys", "Books"])
        books = rows[1]
        self.assertEqual(books.product_count, 2)
        self.assertEqual(books.sales, 4)
        self.assertAlmostEqual(books.revenue, 50.0)
        self.assertAlmostEqual(books.profit_margin, 15.0)

    def test_category_counts_sum_to_total(self) -> None:
        rows = self.engine.category_performance()
        self.assertEqual(sum(r.product_count for r in rows), self.store.count())

    def test_category_performance_empty(self) -> None:
        engine = AggregationEngine(self.make_store())
        self.assertEqual(engine.category_performance(), [])

    def test_dashboard_estimated_revenue(self) -> None:
        metrics = self.engine.dashboard_metrics()
        self.assertEqual(metrics.revenue_source, "estimated")
        self.assertAlmostEqual(metrics.total_revenue, 250.0)
        self.assertEqual(metrics.total_products, 3)
        self.assertAlmostEqual(metrics.avg_profit_margin, 20.0)
        self.assertAlmostEqual(metrics.avg_rating, 4.0)

    def test_dashboard_analytics_revenue(self) -> None:
        self.store.add_analytics(make_record("A", revenue=75.5))
        self.store.add_analytics(make_record("ghost", revenue=24.5))
        metrics = self.engine.dashboard_metrics()
        self.assertEqual(metrics.revenue_source, "analytics")
        self.assertAlmostEqual(metrics.total_revenue, 100.0)

    def test_dashboard_empty_store(self) -> None:
        metrics = AggregationEngine(self.make_store()).dashboard_metrics()
        self.assertEqual(metrics.total_products, 0)
        self.assertEqual(metrics.avg_rating, 0.0)
        self.assertEqual(metrics.total_revenue, 0.0)


class AnalyticsRollUpCases:
    """geographic_data and sales_trends."""

    def setUp(self) -> None:
        self.store = self.make_store()
        self.store.add_analytics_batch([
            make_record("A", datetime(2024, 1, 5), location="Dubai",
                        sales=2, revenue=200.0, views=100, conversions=4),
            make_record("B", datetime(2024, 1, 20), location="Sharjah",
                        sales=1, revenue=50.0, views=0, conversions=0),
            make_record("A", datetime(2024, 2, 1), location="Dubai",
                        sales=3, revenue=300.0, views=100, conversions=6),
        ])
        self.engine = AggregationEngine(self.store)

    def test_geographic_data(self) -> None:
        rows = self.engine.geographic_data()
        self.assertEqual([r.location for r in rows], ["Dubai", "Sharjah"])
        dubai, sharjah = rows
        self.assertEqual(dubai.sales, 5)
        self.assertAlmostEqual(dubai.revenue, 500.0)
        self.assertAlmostEqual(dubai.conversion_rate, 5.0)
        self.assertEqual(sharjah.conversion_rate, 0.0)

    def test_sales_trends_monthly(self) -> None:
        points = self.engine.sales_trends()
        self.assertEqual(
            [(p.month, p.revenue) for p in points],
            [("2024-01", 250.0), ("2024-02", 300.0)],
        )

    def test_no_analytics(self) -> None:
        engine = AggregationEngine(self.make_store())
        self.assertEqual(engine.geographic_data(), [])
        self.assertEqual(engine.sales_trends(), [])


class TestMemoryRankings(MemoryBackend, RankingCases, unittest.TestCase):
    """Ranking views on the in-memory store."""


class TestSqliteRankings(SqliteBackend, RankingCases, unittest.TestCase):
    """Ranking views on the SQLite store."""


class TestMemoryRollUps(MemoryBackend, RollUpCases, unittest.TestCase):
    """Category and dashboard roll-ups on the in-memory store."""


class TestSqliteRollUps(SqliteBackend, RollUpCases, unittest.TestCase):
    """Category and dashboard roll-ups on the SQLite store."""


class TestMemoryAnalyticsRollUps(MemoryBackend, AnalyticsRollUpCases, unittest.TestCase):
    """Geography and trend roll-ups on the in-memory store."""


class TestSqliteAnalyticsRollUps(SqliteBackend, AnalyticsRollUpCases, unittest.TestCase):
    """Geography and trend roll-ups on the SQLite store."""
