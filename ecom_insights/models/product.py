# ecom_insights/models/product.py

"""Product data model, the catalog's central entity."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime, timezone

from ecom_insights.models.errors import ValidationError

# SQLite INTEGER columns are signed 64-bit
INT_MIN = -2**63
INT_MAX = 2**63 - 1


def as_naive_utc(value: datetime) -> datetime:
    """Convert an offset-aware timestamp to naive UTC; pass naive through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def check_value(name: str, value: object, kind: type) -> object:
    """Type-check one non-null field value and return it normalised.

    *kind* is the declared type: ``str``, ``float`` (ints allowed),
    ``int`` (signed 64-bit), ``bool`` or ``datetime``.  Aware
    datetimes come back as naive UTC.

    Raises:
        ValidationError: *value* does not fit *kind*.
    """
    if kind is bool:
        ok = isinstance(value, bool)
    elif kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
        if ok and not INT_MIN <= value <= INT_MAX:  # type: ignore[operator]
            raise ValidationError(
                f"{name} is out of range (got {value})", name,
            )
    elif kind is float:
        ok = (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and math.isfinite(value)
        )
    else:
        ok = isinstance(value, kind)
    if not ok:
        raise ValidationError(
            f"{name} must be {kind.__name__} (got {value!r})", name,
        )
    if isinstance(value, datetime):
        return as_naive_utc(value)
    return value


def check_record(
    record: object,
    kinds: Mapping[str, type],
    optional: frozenset[str] = frozenset(),
) -> None:
    """Type-check every field of a frozen dataclass *record* in place."""
    for name, kind in kinds.items():
        value = getattr(record, name)
        if value is None and name in optional:
            continue
        normalised = check_value(name, value, kind)
        if normalised is not value:
            object.__setattr__(record, name, normalised)


# Fields that must never go below zero when present
_NON_NEGATIVE: tuple[str, ...] = (
    "price",
    "reviews",
    "competitor_price",
    "estimated_demand",
    "cost_price",
    "profit_margin",
    "ad_spend",
)

FIELD_TYPES: dict[str, type] = {
    "product_id": str,
    "title": str,
    "category": str,
    "price": float,
    "rating": float,
    "profit_margin": float,
    "reviews": int,
    "availability": bool,
    "competitor_price": float,
    "promotion_flag": bool,
    "estimated_demand": int,
    "cost_price": float,
    "event": str,
    "event_impact": float,
    "ad_spend": float,
    "market_share": float,
    "date": datetime,
}

_OPTIONAL: frozenset[str] = frozenset({
    "competitor_price", "cost_price", "event", "event_impact",
    "ad_spend", "market_share", "date",
})


@dataclass(frozen=True)
class Product:
    """A single catalog product.

    Instances are immutable and validated on construction, so an
    invalid product can never reach a store.
    """

    product_id: str
    title: str
    category: str
    price: float
    rating: float
    profit_margin: float
    reviews: int = 0
    availability: bool = False
    competitor_price: float | None = None
    promotion_flag: bool = False
    estimated_demand: int = 0
    cost_price: float | None = None
    event: str | None = None
    event_impact: float | None = None
    ad_spend: float | None = None
    market_share: float | None = None
    date: datetime | None = None

    def __post_init__(self) -> None:
        check_record(self, FIELD_TYPES, _OPTIONAL)

        for name in ("product_id", "title", "category"):
            if not getattr(self, name).strip():
                raise ValidationError(f"{name} must not be blank", name)

        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValidationError(
                    f"{name} must be non-negative (got {value})", name,
                )

        if not 0 <= self.rating <= 5:
            raise ValidationError(
                f"rating must be between 0 and 5 (got {self.rating})",
                "rating",
            )
        if self.market_share is not None and not 0 <= self.market_share <= 1:
            raise ValidationError(
                "market_share must be a fraction between 0 and 1 "
                f"(got {self.market_share})",
                "market_share",
            )

    @property
    def estimated_revenue(self) -> float:
        """Demand-weighted revenue estimate (``price × demand``)."""
        return self.price * self.estimated_demand

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain JSON-friendly values."""
        data: dict[str, object] = {
            f.name: getattr(self, f.name) for f in fields(self)
        }
        if self.date is not None:
            data["date"] = self.date.isoformat()
        return data


PRODUCT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(Product))
