# ecom_insights/models/metrics.py

"""Read models produced by the aggregation engine."""

from dataclasses import asdict, dataclass

from ecom_insights.models.product import Product


@dataclass(frozen=True)
class RankedProduct:
    """A product's position within one ranking view."""

    rank: int
    product: Product
    competitive_position: str

    def to_dict(self) -> dict[str, object]:
        """Flatten the product fields alongside the ranking metadata."""
        data = self.product.to_dict()
        data["rank"] = self.rank
        data["competitive_position"] = self.competitive_position
        return data


@dataclass(frozen=True)
class CategoryPerformance:
    """Roll-up of every product sharing one category."""

    category: str
    product_count: int
    sales: int
    revenue: float
    profit_margin: float

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class DashboardMetrics:
    """Store-wide totals shown on the dashboard header.

    ``revenue_source`` is ``"analytics"`` when revenue was summed from
    analytics records and ``"estimated"`` when it fell back to
    ``price × estimated_demand``.
    """

    total_revenue: float
    revenue_source: str
    total_products: int
    avg_profit_margin: float
    avg_rating: float

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class GeographicData:
    """Analytics roll-up for one location."""

    location: str
    sales: int
    revenue: float
    conversion_rate: float

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class SalesTrendPoint:
    """Total analytics revenue for one calendar month (``YYYY-MM``)."""

    month: str
    revenue: float

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
