# ecom_insights/services/aggregation.py

"""Ranking views and roll-ups computed by full scans of the store.

Every view is a pure function of the store contents at call time.
Sorts are stable, so ties keep store order and repeated calls on an
unchanged store return identical results.  No view reports growth:
there is no historical baseline to derive it from.
"""

import logging
from collections import defaultdict
from collections.abc import Callable

from ecom_insights.config.settings import Settings
from ecom_insights.models.metrics import (
    CategoryPerformance,
    DashboardMetrics,
    GeographicData,
    RankedProduct,
    SalesTrendPoint,
)
from ecom_insights.models.product import Product
from ecom_insights.storage.catalog_store import CatalogStore

logger = logging.getLogger("ecom_insights.aggregation")

TRENDING = "leading"
TOP_MARGIN = "profitable"
UNDERPERFORMING = "needs attention"


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


class AggregationEngine:
    """Derived metrics over a :class:`CatalogStore`."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    # ── Rankings ─────────────────────────────────────────

    def _rank(
        self,
        limit: int,
        key: Callable[[Product], float],
        descending: bool,
        position: str,
    ) -> list[RankedProduct]:
        if limit < 0:
            msg = f"limit must be non-negative (got {limit})"
            raise ValueError(msg)
        ordered = sorted(self.store.scan(), key=key, reverse=descending)
        return [
            RankedProduct(rank=i, product=p, competitive_position=position)
            for i, p in enumerate(ordered[:limit], 1)
        ]

    def trending(
        self, limit: int = Settings.DEFAULT_RANKING_LIMIT,
    ) -> list[RankedProduct]:
        """Products with the highest event impact (missing counts as 0)."""
        return self._rank(
            limit,
            lambda p: p.event_impact or 0.0,
            descending=True,
            position=TRENDING,
        )

    def top_margin(
        self, limit: int = Settings.DEFAULT_RANKING_LIMIT,
    ) -> list[RankedProduct]:
        """Products with the highest profit margin."""
        return self._rank(
            limit,
            lambda p: p.profit_margin,
            descending=True,
            position=TOP_MARGIN,
        )

    def underperforming(
        self, limit: int = Settings.DEFAULT_RANKING_LIMIT,
    ) -> list[RankedProduct]:
        """Products with the lowest estimated demand."""
        return self._rank(
            limit,
            lambda p: p.estimated_demand,
            descending=False,
            position=UNDERPERFORMING,
        )

    # ── Roll-ups ─────────────────────────────────────────

    def category_performance(self) -> list[CategoryPerformance]:
        """Group products by category.

        ``sales`` sums estimated demand, ``revenue`` sums
        ``price × estimated_demand`` and ``profit_margin`` is the mean
        margin of the group.  Ordered by revenue, highest first.
        """
        groups: dict[str, list[Product]] = defaultdict(list)
        for product in self.store.scan():
            groups[product.category].append(product)

        rows = [
            CategoryPerformance(
                category=category,
                product_count=len(members),
                sales=sum(p.estimated_demand for p in members),
                revenue=round(sum(p.estimated_revenue for p in members), 2),
                profit_margin=_mean([p.profit_margin for p in members]),
            )
            for category, members in groups.items()
        ]
        rows.sort(key=lambda r: (-r.revenue, r.category))
        logger.debug("Category performance over %d categories", len(rows))
        return rows

    def dashboard_metrics(self) -> DashboardMetrics:
        """Store-wide totals.

        Revenue is summed from analytics records when any exist and
        estimated from ``price × estimated_demand`` otherwise; the
        ``revenue_source`` field says which.
        """
        products = self.store.scan()
        analytics = self.store.get_analytics()
        if analytics:
            total_revenue = sum(r.revenue for r in analytics)
            source = "analytics"
        else:
            total_revenue = sum(p.estimated_revenue for p in products)
            source = "estimated"

        return DashboardMetrics(
            total_revenue=round(total_revenue, 2),
            revenue_source=source,
            total_products=len(products),
            avg_profit_margin=_mean([p.profit_margin for p in products]),
            avg_rating=_mean([p.rating for p in products]),
        )

    def geographic_data(self) -> list[GeographicData]:
        """Analytics grouped by location, highest revenue first."""
        sales: dict[str, int] = defaultdict(int)
        revenue: dict[str, float] = defaultdict(float)
        views: dict[str, int] = defaultdict(int)
        conversions: dict[str, int] = defaultdict(int)
        for record in self.store.get_analytics():
            sales[record.location] += record.sales
            revenue[record.location] += record.revenue
            views[record.location] += record.views
            conversions[record.location] += record.conversions

        rows = [
            GeographicData(
                location=location,
                sales=sales[location],
                revenue=round(revenue[location], 2),
                conversion_rate=(
                    round(conversions[location] / views[location] * 100, 2)
                    if views[location]
                    else 0.0
                ),
            )
            for location in sales
        ]
        rows.sort(key=lambda r: (-r.revenue, r.location))
        return rows

    def sales_trends(self) -> list[SalesTrendPoint]:
        """Analytics revenue per calendar month, oldest first."""
        monthly: dict[str, float] = defaultdict(float)
        for record in self.store.get_analytics():
            monthly[record.date.strftime("%Y-%m")] += record.revenue
        return [
            SalesTrendPoint(month=month, revenue=round(total, 2))
            for month, total in sorted(monthly.items())
        ]
