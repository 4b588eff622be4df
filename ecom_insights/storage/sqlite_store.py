# ecom_insights/storage/sqlite_store.py

"""SQLite-backed persistent catalog store."""

import logging
import sqlite3
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_filter import ProductFilters, check_page
from ecom_insights.models.analytics import AnalyticsRecord
from ecom_insights.models.errors import (
    DuplicateProductError,
    StorageUnavailable,
)
from ecom_insights.models.product import PRODUCT_FIELDS, Product, as_naive_utc
from ecom_insights.storage.catalog_store import (
    CatalogStore,
    check_field_value,
    dedupe_batch,
    merge_fields,
)

logger = logging.getLogger("ecom_insights.storage.sqlite")

MEMORY_PATH = ":memory:"

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    product_id       TEXT    PRIMARY KEY,
    title            TEXT    NOT NULL,
    category         TEXT    NOT NULL,
    price            REAL    NOT NULL,
    rating           REAL    NOT NULL,
    profit_margin    REAL    NOT NULL,
    reviews          INTEGER NOT NULL DEFAULT 0,
    availability     INTEGER NOT NULL DEFAULT 0,
    competitor_price REAL,
    promotion_flag   INTEGER NOT NULL DEFAULT 0,
    estimated_demand INTEGER NOT NULL DEFAULT 0,
    cost_price       REAL,
    event            TEXT,
    event_impact     REAL,
    ad_spend         REAL,
    market_share     REAL,
    date             TEXT
);

CREATE INDEX IF NOT EXISTS idx_products_category
    ON products(category);

CREATE TABLE IF NOT EXISTS analytics (
    id          TEXT    PRIMARY KEY,
    product_id  TEXT    NOT NULL,
    date        TEXT    NOT NULL,
    sales       INTEGER NOT NULL,
    revenue     REAL    NOT NULL,
    views       INTEGER NOT NULL,
    conversions INTEGER NOT NULL,
    location    TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_analytics_product_date
    ON analytics(product_id, date);

CREATE INDEX IF NOT EXISTS idx_analytics_location
    ON analytics(location);
"""

_COLUMNS = ", ".join(PRODUCT_FIELDS)
_PLACEHOLDERS = ", ".join("?" for _ in PRODUCT_FIELDS)
_UPDATE_SET = ", ".join(
    f"{name}=excluded.{name}"
    for name in PRODUCT_FIELDS
    if name != "product_id"
)

_INSERT_SQL = f"INSERT INTO products ({_COLUMNS}) VALUES ({_PLACEHOLDERS})"
_UPSERT_SQL = (
    f"{_INSERT_SQL} "
    f"ON CONFLICT(product_id) DO UPDATE SET {_UPDATE_SET}"
)
_SELECT_SQL = f"SELECT {_COLUMNS} FROM products"

_ANALYTICS_COLUMNS = (
    "id", "product_id", "date", "sales",
    "revenue", "views", "conversions", "location",
)
_ANALYTICS_UPSERT_SQL = (
    f"INSERT INTO analytics ({', '.join(_ANALYTICS_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _ANALYTICS_COLUMNS)}) "
    "ON CONFLICT(id) DO UPDATE SET "
    + ", ".join(
        f"{name}=excluded.{name}"
        for name in _ANALYTICS_COLUMNS
        if name != "id"
    )
)

_BOOL_COLUMNS: frozenset[str] = frozenset({"availability", "promotion_flag"})


def _timestamp(value: datetime) -> str:
    """Fixed-width ISO text so timestamps sort lexically."""
    return value.isoformat(timespec="microseconds")


def _to_db(field: str, value: object) -> object:
    if value is None:
        return None
    if field in _BOOL_COLUMNS:
        return int(bool(value))
    if isinstance(value, datetime):
        return _timestamp(value)
    return value


def _product_params(product: Product) -> tuple[object, ...]:
    return tuple(
        _to_db(name, getattr(product, name)) for name in PRODUCT_FIELDS
    )


def _row_to_product(row: tuple[Any, ...]) -> Product:
    values: dict[str, Any] = dict(zip(PRODUCT_FIELDS, row))
    for name in _BOOL_COLUMNS:
        values[name] = bool(values[name])
    if values["date"] is not None:
        values["date"] = datetime.fromisoformat(values["date"])
    return Product(**values)


def _row_to_record(row: tuple[Any, ...]) -> AnalyticsRecord:
    values: dict[str, Any] = dict(zip(_ANALYTICS_COLUMNS, row))
    values["date"] = datetime.fromisoformat(values["date"])
    return AnalyticsRecord(**values)


def _casefold_contains(haystack: str | None, needle: str | None) -> bool:
    if haystack is None or needle is None:
        return False
    return needle.casefold() in haystack.casefold()


class SqliteCatalogStore(CatalogStore):
    """Durable catalog store on a single SQLite database file.

    One connection is shared between threads and serialised by a lock.
    WAL journaling lets readers proceed while a batch is written, and
    each batch runs in one transaction so a failure mid-batch rolls
    back every row of it.
    """

    def __init__(
        self,
        db_path: Path | str,
        timeout: float = Settings.DB_TIMEOUT,
    ) -> None:
        self._path = str(db_path)
        self._lock = threading.RLock()
        try:
            if self._path != MEMORY_PATH:
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self._path, timeout=timeout, check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.create_function(
                "casefold_contains", 2, _casefold_contains,
                deterministic=True,
            )
        except (OSError, sqlite3.Error) as exc:
            logger.error(
                "Cannot open catalog database at %s: %s", self._path, exc,
            )
            msg = f"Cannot open catalog database at {self._path}: {exc}"
            raise StorageUnavailable(msg) from exc
        logger.debug("SqliteCatalogStore opened at %s", self._path)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
        logger.debug("SqliteCatalogStore closed (%s)", self._path)

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        """Serialise access and translate backend faults."""
        with self._lock:
            try:
                yield self._conn
            except (sqlite3.Error, OverflowError) as exc:
                logger.error(
                    "SQLite %s failed: %s", action, exc, exc_info=True,
                )
                msg = f"Catalog database unavailable during {action}: {exc}"
                raise StorageUnavailable(msg) from exc

    def _select(self, where: str = "", params: Sequence[object] = (),
                suffix: str = "") -> list[Product]:
        sql = f"{_SELECT_SQL} {where} ORDER BY rowid {suffix}".strip()
        with self._session("read") as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
        return [_row_to_product(r) for r in rows]

    # ── Products: reads ──────────────────────────────────

    def get(self, product_id: str) -> Product | None:
        found = self._select("WHERE product_id = ?", (product_id,))
        return found[0] if found else None

    def get_by_field(self, field: str, value: object) -> Product | None:
        value = check_field_value(field, value)
        if value is None:
            found = self._select(f"WHERE {field} IS NULL", (), "LIMIT 1")
        else:
            found = self._select(
                f"WHERE {field} = ?", (_to_db(field, value),), "LIMIT 1",
            )
        return found[0] if found else None

    def list_products(
        self,
        limit: int = Settings.DEFAULT_PAGE_LIMIT,
        offset: int = 0,
        filters: ProductFilters | None = None,
    ) -> list[Product]:
        limit = check_page(limit, offset)
        filters = filters or ProductFilters()
        conditions: list[str] = []
        params: list[object] = []
        if filters.category is not None:
            conditions.append("category = ?")
            params.append(filters.category)
        if filters.min_price is not None:
            conditions.append("price >= ?")
            params.append(filters.min_price)
        if filters.max_price is not None:
            conditions.append("price <= ?")
            params.append(filters.max_price)
        if filters.min_rating is not None:
            conditions.append("rating >= ?")
            params.append(filters.min_rating)
        if filters.location is not None:
            conditions.append(
                "product_id IN "
                "(SELECT product_id FROM analytics WHERE location = ?)"
            )
            params.append(filters.location)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend((limit, offset))
        return self._select(where, params, "LIMIT ? OFFSET ?")

    def search(self, query: str) -> list[Product]:
        return self._select(
            "WHERE casefold_contains(title, ?) "
            "OR casefold_contains(category, ?)",
            (query, query),
        )

    def products_by_category(self, category: str) -> list[Product]:
        return self._select("WHERE category = ?", (category,))

    def scan(self) -> list[Product]:
        return self._select()

    def count(self) -> int:
        with self._session("count") as conn:
            row = conn.execute("SELECT COUNT(*) FROM products").fetchone()
        return int(row[0])

    # ── Products: writes ─────────────────────────────────

    def create(self, product: Product) -> Product:
        with self._session("create") as conn:
            try:
                with conn:
                    conn.execute(_INSERT_SQL, _product_params(product))
            except sqlite3.IntegrityError:
                raise DuplicateProductError(product.product_id) from None
        logger.debug("Created product %s", product.product_id)
        return product

    def upsert_batch(self, products: Sequence[Product]) -> int:
        batch = dedupe_batch(products)
        if not batch:
            return 0
        with self._session("upsert") as conn:
            before = conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]
            with conn:
                conn.executemany(
                    _UPSERT_SQL, [_product_params(p) for p in batch],
                )
            after = conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]
        inserted = after - before
        logger.info(
            "Upserted %d products (%d inserted, %d updated)",
            len(batch),
            inserted,
            len(batch) - inserted,
        )
        return len(batch)

    def update(
        self, product_id: str, fields: Mapping[str, Any],
    ) -> Product | None:
        with self._session("update") as conn:
            current = self.get(product_id)
            if current is None:
                return None
            updated = merge_fields(current, fields)
            if fields:
                assignments = ", ".join(f"{name} = ?" for name in fields)
                params = [
                    _to_db(name, getattr(updated, name)) for name in fields
                ]
                with conn:
                    conn.execute(
                        f"UPDATE products SET {assignments} "
                        "WHERE product_id = ?",
                        (*params, product_id),
                    )
        logger.debug(
            "Updated product %s fields=%s", product_id, sorted(fields),
        )
        return updated

    # ── Analytics ────────────────────────────────────────

    def add_analytics(self, record: AnalyticsRecord) -> AnalyticsRecord:
        self.add_analytics_batch([record])
        return record

    def add_analytics_batch(self, records: Sequence[AnalyticsRecord]) -> int:
        if not records:
            return 0
        params = [
            (
                r.id, r.product_id, _timestamp(r.date), r.sales,
                r.revenue, r.views, r.conversions, r.location,
            )
            for r in records
        ]
        with self._session("analytics insert") as conn:
            with conn:
                conn.executemany(_ANALYTICS_UPSERT_SQL, params)
        logger.info("Stored %d analytics records", len(records))
        return len(records)

    def get_analytics(
        self,
        product_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[AnalyticsRecord]:
        conditions: list[str] = []
        params: list[object] = []
        if product_id is not None:
            conditions.append("product_id = ?")
            params.append(product_id)
        if start is not None:
            conditions.append("date >= ?")
            params.append(_timestamp(as_naive_utc(start)))
        if end is not None:
            conditions.append("date <= ?")
            params.append(_timestamp(as_naive_utc(end)))
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        sql = (
            f"SELECT {', '.join(_ANALYTICS_COLUMNS)} FROM analytics "
            f"{where} ORDER BY date, rowid"
        )
        with self._session("analytics read") as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
        return [_row_to_record(r) for r in rows]
