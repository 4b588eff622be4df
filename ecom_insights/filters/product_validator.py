# ecom_insights/filters/product_validator.py

"""Row validation: coerce raw CSV/API rows into typed records.

Validators never raise for a bad row.  They return a
:class:`ValidationResult` so the caller decides whether to skip the
row (ingestion) or surface the error (single-record API calls).
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ecom_insights.models.analytics import AnalyticsRecord
from ecom_insights.models.errors import ValidationError
from ecom_insights.models.product import INT_MAX, INT_MIN, Product

logger = logging.getLogger("ecom_insights.validator")

_NULL_TOKENS: frozenset[str] = frozenset({"", "null"})
_TRUE_TOKENS: frozenset[str] = frozenset({"true", "1", "yes", "y"})
_FALSE_TOKENS: frozenset[str] = frozenset({"false", "0", "no", "n"})

# Column aliases accepted in feeds and request bodies
_ALIASES: dict[str, str] = {
    "id": "product_id",
    "name": "title",
}


# ── Scalar coercion ──────────────────────────────────────


def _is_null(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in _NULL_TOKENS


def to_text(value: object, name: str) -> str:
    """Return *value* as stripped text."""
    return str(value).strip()


def to_float(value: object, name: str) -> float:
    """Coerce a numeric string (or number) to ``float``."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number", name)
    try:
        result = float(str(value).strip())
    except ValueError:
        raise ValidationError(
            f"{name} is not a number: {value!r}", name,
        ) from None
    if result != result or result in (float("inf"), float("-inf")):
        raise ValidationError(f"{name} must be finite", name)
    return result


def to_int(value: object, name: str) -> int:
    """Coerce an integral string such as ``"12"`` or ``"12.0"``.

    Values outside the signed 64-bit range are rejected.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except ValueError:
            real = to_float(value, name)
            if not real.is_integer():
                raise ValidationError(
                    f"{name} must be a whole number: {value!r}", name,
                ) from None
            number = int(real)
    if not INT_MIN <= number <= INT_MAX:
        raise ValidationError(f"{name} is out of range: {value!r}", name)
    return number


def to_bool(value: object, name: str) -> bool:
    """Normalise boolean-ish text; null and empty mean ``False``."""
    if isinstance(value, bool):
        return value
    if _is_null(value):
        return False
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValidationError(f"{name} is not a boolean: {value!r}", name)


def to_datetime(value: object, name: str) -> datetime:
    """Parse an ISO-8601 date or timestamp (``Z`` suffix allowed)."""
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"{name} is not an ISO-8601 date: {value!r}", name,
        ) from None


Coercer = Callable[[object, str], Any]

# field → (coercer, required)
_PRODUCT_FIELDS: dict[str, tuple[Coercer, bool]] = {
    "product_id": (to_text, True),
    "title": (to_text, True),
    "category": (to_text, True),
    "price": (to_float, True),
    "rating": (to_float, True),
    "profit_margin": (to_float, True),
    "reviews": (to_int, False),
    "availability": (to_bool, False),
    "competitor_price": (to_float, False),
    "promotion_flag": (to_bool, False),
    "estimated_demand": (to_int, False),
    "cost_price": (to_float, False),
    "event": (to_text, False),
    "event_impact": (to_float, False),
    "ad_spend": (to_float, False),
    "market_share": (to_float, False),
    "date": (to_datetime, False),
}

_ANALYTICS_FIELDS: dict[str, tuple[Coercer, bool]] = {
    "product_id": (to_text, True),
    "date": (to_datetime, True),
    "sales": (to_int, True),
    "revenue": (to_float, True),
    "views": (to_int, True),
    "conversions": (to_int, True),
    "location": (to_text, True),
    "id": (to_text, False),
}


def normalise_keys(
    raw: Mapping[str, object],
    aliases: Mapping[str, str] = _ALIASES,
) -> dict[str, object]:
    """Lower-case and strip keys, resolving column *aliases*.

    A canonical column wins over its alias when both are present.
    """
    normalised: dict[str, object] = {}
    for key, value in raw.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        canonical = aliases.get(name, name)
        if canonical != name and canonical in normalised:
            continue
        normalised[canonical] = value
    return normalised


def _blank_value(coerce: Coercer) -> Any:
    """Value an explicitly nulled optional field is reset to."""
    if coerce is to_bool:
        return False
    if coerce is to_int:
        return 0
    return None


def _coerce_fields(
    row: Mapping[str, object],
    schema: Mapping[str, tuple[Coercer, bool]],
    partial: bool = False,
) -> dict[str, Any]:
    """Coerce the fields of *row* named in *schema*.

    Null optional fields are left out of a full row so the model's
    defaults apply; in a partial row they reset the stored value.
    """
    values: dict[str, Any] = {}
    for name, (coerce, required) in schema.items():
        if name not in row:
            if required and not partial:
                raise ValidationError(f"missing required field: {name}", name)
            continue
        raw_value = row[name]
        if _is_null(raw_value):
            if required:
                raise ValidationError(f"{name} must not be empty", name)
            if partial:
                values[name] = _blank_value(coerce)
            continue
        values[name] = coerce(raw_value, name)
    return values


# ── Results ──────────────────────────────────────────────


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one row: a record or an error, never both."""

    record: Any = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProductValidator:
    """Validate and coerce raw product rows."""

    @staticmethod
    def validate(raw: Mapping[str, object]) -> ValidationResult:
        """Coerce *raw* into a :class:`Product`.

        Unknown keys are ignored.  Optional fields holding ``""`` or
        ``"NULL"`` become ``None`` (booleans become ``False``).
        """
        try:
            values = _coerce_fields(normalise_keys(raw), _PRODUCT_FIELDS)
            return ValidationResult(record=Product(**values))
        except ValidationError as exc:
            return ValidationResult(error=exc)

    @staticmethod
    def validate_partial(raw: Mapping[str, object]) -> dict[str, Any]:
        """Coerce only the supplied fields, for partial updates.

        Raises:
            ValidationError: a supplied field is malformed or unknown.
        """
        row = normalise_keys(raw)
        unknown = sorted(set(row) - set(_PRODUCT_FIELDS))
        if unknown:
            raise ValidationError(
                f"unknown product field(s): {', '.join(unknown)}",
                unknown[0],
            )
        return _coerce_fields(row, _PRODUCT_FIELDS, partial=True)


class AnalyticsValidator:
    """Validate and coerce raw analytics rows."""

    @staticmethod
    def validate(raw: Mapping[str, object]) -> ValidationResult:
        """Coerce *raw* into an :class:`AnalyticsRecord`.

        ``id`` names the record itself here, so product aliases do
        not apply.
        """
        try:
            values = _coerce_fields(
                normalise_keys(raw, aliases={}), _ANALYTICS_FIELDS,
            )
            return ValidationResult(record=AnalyticsRecord(**values))
        except ValidationError as exc:
            return ValidationResult(error=exc)
