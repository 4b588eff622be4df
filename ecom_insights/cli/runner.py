# ecom_insights/cli/runner.py

"""Headless CLI commands over the catalog core."""

import json
import logging
import sys
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from ecom_insights.config.settings import Settings
from ecom_insights.filters.product_filter import parse_query_params
from ecom_insights.models.errors import CatalogError
from ecom_insights.models.product import Product
from ecom_insights.services.aggregation import AggregationEngine
from ecom_insights.services.ingestion import CsvIngestionPipeline
from ecom_insights.services.query_engine import QueryEngine
from ecom_insights.storage.catalog_store import CatalogStore, create_store

logger = logging.getLogger("ecom_insights.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

RANKINGS: tuple[str, ...] = ("trending", "top-margin", "underperforming")


@dataclass
class Catalog:
    """Process-wide wiring: one store and the services built on it."""

    store: CatalogStore
    pipeline: CsvIngestionPipeline
    queries: QueryEngine
    aggregation: AggregationEngine

    def close(self) -> None:
        self.store.close()


def open_catalog(
    database_url: str | None = None,
    seed_path: Path | None = None,
) -> Catalog:
    """Select the store backend once and inject it into every service.

    When *seed_path* is given it is ingested before any command runs;
    otherwise an empty store is seeded from ``Settings.SEED_CSV_PATH``.
    """
    store = create_store(database_url)
    pipeline = CsvIngestionPipeline(store)
    try:
        if seed_path is not None:
            pipeline.ingest_file(seed_path)
        else:
            pipeline.seed_if_empty(Settings.SEED_CSV_PATH)
    except Exception:
        store.close()
        raise
    return Catalog(
        store=store,
        pipeline=pipeline,
        queries=QueryEngine(store),
        aggregation=AggregationEngine(store),
    )


# ── Output helpers ───────────────────────────────────────


def _dump_json(rows: Sequence[Mapping[str, Any]] | Mapping[str, Any]) -> None:
    json.dump(rows, sys.stdout, ensure_ascii=False, indent=2, default=str)
    sys.stdout.write("\n")


def _fmt(value: object) -> str:
    if value is None:
        return "—"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)


def _print_table(
    title: str,
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
) -> None:
    """Render selected columns of *rows* as a Rich table on stdout."""
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    for column in columns:
        if rows and isinstance(rows[0].get(column), (int, float)):
            table.add_column(column, justify="right", style="green")
        else:
            table.add_column(column)
    for row in rows:
        table.add_row(*(_fmt(row.get(c)) for c in columns))
    Console().print(table)


_PRODUCT_COLUMNS = (
    "product_id", "title", "category", "price",
    "rating", "profit_margin", "estimated_demand",
)


def _emit(
    title: str,
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    output_format: str,
) -> None:
    if output_format == "table":
        _print_table(title, rows, columns)
    else:
        _dump_json(rows)


def _emit_products(
    title: str, products: list[Product], output_format: str,
) -> None:
    _emit(title, [p.to_dict() for p in products], _PRODUCT_COLUMNS,
          output_format)


def run_command(
    catalog_factory: Callable[[], Catalog],
    command: Callable[[Catalog], int],
) -> int:
    """Open the catalog, run *command*, and map core errors to exit 1."""
    try:
        catalog = catalog_factory()
    except (CatalogError, ValueError) as exc:
        logger.error("Cannot open catalog: %s", exc, exc_info=True)
        _err.print(f"[red]Cannot open catalog: {exc}[/red]")
        return 1
    try:
        return command(catalog)
    except (CatalogError, ValueError) as exc:
        logger.error("Command failed: %s", exc, exc_info=True)
        _err.print(f"[red]Error: {exc}[/red]")
        return 1
    finally:
        catalog.close()


# ── Commands ─────────────────────────────────────────────


def cmd_ingest(catalog: Catalog, path: Path, analytics: bool) -> int:
    """Ingest a product (or analytics) CSV file."""
    count = catalog.pipeline.ingest_file(path, analytics=analytics)
    kind = "analytics records" if analytics else "products"
    _err.print(f"[green]✓ Ingested {count:,} {kind} from {path}[/green]")
    _err.print(f"[dim]Catalog now holds {catalog.store.count():,} products[/dim]")
    return 0


def cmd_list(
    catalog: Catalog, params: Mapping[str, str], output_format: str,
) -> int:
    """List (or search, when ``q`` is set) products from wire parameters."""
    query = parse_query_params(params)
    products = catalog.queries.run(query)
    if not products:
        _err.print("[yellow]No products found.[/yellow]")
    _emit_products("Products", products, output_format)
    return 0


def cmd_rankings(
    catalog: Catalog, view: str, limit: int, output_format: str,
) -> int:
    """Show one ranking view."""
    views = {
        "trending": catalog.aggregation.trending,
        "top-margin": catalog.aggregation.top_margin,
        "underperforming": catalog.aggregation.underperforming,
    }
    if view not in views:
        msg = f"Unknown ranking: {view} (choose from {', '.join(RANKINGS)})"
        raise ValueError(msg)
    ranked = views[view](limit)
    _emit(
        view.replace("-", " ").title(),
        [r.to_dict() for r in ranked],
        ("rank", *_PRODUCT_COLUMNS, "competitive_position"),
        output_format,
    )
    return 0


def cmd_categories(catalog: Catalog, output_format: str) -> int:
    """Show category performance."""
    rows = [r.to_dict() for r in catalog.aggregation.category_performance()]
    _emit(
        "Category Performance",
        rows,
        ("category", "product_count", "sales", "revenue", "profit_margin"),
        output_format,
    )
    return 0


def cmd_metrics(catalog: Catalog, output_format: str) -> int:
    """Show dashboard totals."""
    metrics = catalog.aggregation.dashboard_metrics().to_dict()
    if output_format == "table":
        _print_table("Dashboard Metrics", [metrics], tuple(metrics))
    else:
        _dump_json(metrics)
    return 0


def cmd_geography(catalog: Catalog, output_format: str) -> int:
    """Show analytics grouped by location."""
    rows = [r.to_dict() for r in catalog.aggregation.geographic_data()]
    _emit(
        "Geographic Performance",
        rows,
        ("location", "sales", "revenue", "conversion_rate"),
        output_format,
    )
    return 0


def cmd_trends(catalog: Catalog, output_format: str) -> int:
    """Show monthly analytics revenue."""
    rows = [r.to_dict() for r in catalog.aggregation.sales_trends()]
    _emit("Sales Trends", rows, ("month", "revenue"), output_format)
    return 0
