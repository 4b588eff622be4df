# ecom_insights/services/ingestion.py

"""Streaming CSV ingestion into the catalog store.

Rows are validated one at a time; bad rows are logged and skipped.
Valid rows accumulate in memory and reach the store in exactly one
batch once the stream ends, so a stream failure never leaves a
partial write behind.
"""

import csv
import io
import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import IO, Any

from ecom_insights.filters.product_validator import (
    AnalyticsValidator,
    ProductValidator,
    ValidationResult,
)
from ecom_insights.models.errors import IngestionError
from ecom_insights.storage.catalog_store import CatalogStore

logger = logging.getLogger("ecom_insights.ingestion")

RowValidator = Callable[[dict[str, Any]], ValidationResult]


def _text_stream(stream: IO[Any]) -> tuple[IO[str], io.TextIOWrapper | None]:
    """Wrap a byte stream for CSV decoding; pass text streams through.

    Returns the text stream and the wrapper to detach afterwards (so
    the caller's stream is left open), or ``None`` for text input.
    """
    if isinstance(stream, io.TextIOBase):
        return stream, None
    wrapper = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
    return wrapper, wrapper


def _iter_rows(text: IO[str]) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_number, row)`` with header names trimmed and lower-cased."""
    reader = csv.DictReader(text)
    if reader.fieldnames is None:
        return
    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    for row in reader:
        yield reader.line_num, {
            key: value for key, value in row.items() if key is not None
        }


class CsvIngestionPipeline:
    """Validate CSV feeds and upsert them into a :class:`CatalogStore`."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def _collect(
        self,
        stream: IO[Any],
        validate: RowValidator,
        kind: str,
    ) -> list[Any]:
        """Validate every row of *stream*; return the valid records."""
        text, wrapper = _text_stream(stream)
        records: list[Any] = []
        skipped = 0
        try:
            for line_num, row in _iter_rows(text):
                result = validate(row)
                if result.ok:
                    records.append(result.record)
                    continue
                skipped += 1
                logger.warning(
                    "Skipping invalid %s row at line %d: %s (row=%s)",
                    kind,
                    line_num,
                    result.error,
                    row,
                )
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            logger.error(
                "%s stream failed after %d valid rows; batch discarded",
                kind.capitalize(),
                len(records),
                exc_info=True,
            )
            msg = f"Failed to read {kind} CSV stream: {exc}"
            raise IngestionError(msg) from exc
        finally:
            if wrapper is not None:
                wrapper.detach()

        if skipped:
            logger.info("Skipped %d invalid %s rows", skipped, kind)
        return records

    def ingest(self, stream: IO[Any]) -> int:
        """Ingest a product CSV stream.

        Returns the number of rows that passed validation.  Existing
        products with the same identifier are updated, never
        duplicated, and products missing from the feed are kept.

        Raises:
            IngestionError: the stream could not be read or decoded.
            StorageUnavailable: the batch upsert failed.
        """
        products = self._collect(stream, ProductValidator.validate, "product")
        if products:
            self.store.upsert_batch(products)
        logger.info("Ingested %d valid product rows", len(products))
        return len(products)

    def ingest_analytics(self, stream: IO[Any]) -> int:
        """Ingest an analytics CSV stream; rows with an ``id`` upsert."""
        records = self._collect(
            stream, AnalyticsValidator.validate, "analytics",
        )
        if records:
            self.store.add_analytics_batch(records)
        logger.info("Ingested %d valid analytics rows", len(records))
        return len(records)

    def ingest_file(self, path: Path, analytics: bool = False) -> int:
        """Open *path* and ingest it as a product (or analytics) feed."""
        try:
            handle = open(path, "rb")
        except OSError as exc:
            msg = f"Cannot open CSV file {path}: {exc}"
            raise IngestionError(msg) from exc
        with handle:
            logger.info("Ingesting %s from %s",
                        "analytics" if analytics else "products", path)
            if analytics:
                return self.ingest_analytics(handle)
            return self.ingest(handle)

    def seed_if_empty(self, path: Path) -> int:
        """Load the seed catalog when the store holds no products."""
        existing = self.store.count()
        if existing:
            logger.info(
                "%d products found — skipping catalog seeding", existing,
            )
            return 0
        if not path.exists():
            logger.warning("Seed file %s not found — skipping seeding", path)
            return 0
        count = self.ingest_file(path)
        logger.info("Seeded %d products from %s", count, path)
        return count
