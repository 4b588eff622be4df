# ecom_insights/models/errors.py

"""Error taxonomy for the catalog storage and aggregation core.

Not-found is never an exception: lookups return ``None`` instead.
"""


class CatalogError(Exception):
    """Base class for every error raised by the catalog core."""


class ValidationError(CatalogError, ValueError):
    """A raw row or field could not be coerced into a valid record."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StorageUnavailable(CatalogError):
    """The storage backend could not be reached or used."""


class DuplicateProductError(CatalogError):
    """A create call targeted an identifier that already exists."""

    def __init__(self, product_id: str) -> None:
        super().__init__(f"Product already exists: {product_id}")
        self.product_id = product_id


class IngestionError(CatalogError):
    """The CSV stream itself failed; the in-flight batch was discarded."""
