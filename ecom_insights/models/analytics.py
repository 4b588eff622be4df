# ecom_insights/models/analytics.py

"""Per-product analytics observations used for trend roll-ups."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from ecom_insights.models.errors import ValidationError
from ecom_insights.models.product import check_record

_FIELD_TYPES: dict[str, type] = {
    "product_id": str,
    "date": datetime,
    "sales": int,
    "revenue": float,
    "views": int,
    "conversions": int,
    "location": str,
    "id": str,
}


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class AnalyticsRecord:
    """Sales activity for one product, on one date, at one location.

    ``product_id`` is a soft reference: records for products that are
    not in the catalog are kept and tolerated by every reader.
    """

    product_id: str
    date: datetime
    sales: int
    revenue: float
    views: int
    conversions: int
    location: str
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        check_record(self, _FIELD_TYPES)
        for name in ("product_id", "location", "id"):
            if not getattr(self, name).strip():
                raise ValidationError(f"{name} must not be blank", name)
        for name in ("sales", "revenue", "views", "conversions"):
            if getattr(self, name) < 0:
                raise ValidationError(
                    f"{name} must be non-negative", name,
                )

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain JSON-friendly values."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "date": self.date.isoformat(),
            "sales": self.sales,
            "revenue": self.revenue,
            "views": self.views,
            "conversions": self.conversions,
            "location": self.location,
        }
