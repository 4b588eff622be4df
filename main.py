# main.py

"""Entry point for the ecom_insights catalog CLI."""

import argparse
import logging
import sys
from functools import partial
from pathlib import Path

from ecom_insights.config.logging_config import setup_logging

logger = logging.getLogger("ecom_insights.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ecom_insights",
        description="E-commerce catalog analytics: ingest, query, rank.",
        epilog=(
            "Set DATABASE_URL=sqlite:///path/to/catalog.db for a "
            "persistent catalog; leave it unset for an in-memory one."
        ),
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--seed",
        type=Path,
        default=None,
        help="Product CSV to ingest before running the command.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo INFO logs to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="Ingest a CSV feed.")
    ingest.add_argument("path", type=Path, help="CSV file to ingest.")
    ingest.add_argument(
        "--analytics",
        action="store_true",
        default=False,
        help="Treat the file as analytics records, not products.",
    )

    listing = sub.add_parser("list", help="List products with filters.")
    listing.add_argument("--limit", default=None)
    listing.add_argument("--offset", default=None)
    listing.add_argument("--category", default=None)
    listing.add_argument("--min-price", dest="minPrice", default=None)
    listing.add_argument("--max-price", dest="maxPrice", default=None)
    listing.add_argument("--min-rating", dest="minRating", default=None)
    listing.add_argument("--location", default=None)

    search = sub.add_parser("search", help="Search titles and categories.")
    search.add_argument("q", help="Search term.")
    search.add_argument("--limit", default=None)
    search.add_argument("--offset", default=None)

    rankings = sub.add_parser("rankings", help="Show a ranking view.")
    rankings.add_argument(
        "view", choices=["trending", "top-margin", "underperforming"],
    )
    rankings.add_argument("--limit", type=int, default=10)

    sub.add_parser("categories", help="Category performance roll-up.")
    sub.add_parser("metrics", help="Dashboard totals.")
    sub.add_parser("geography", help="Analytics grouped by location.")
    sub.add_parser("trends", help="Monthly analytics revenue.")
    return parser


_PARAM_KEYS = (
    "limit", "offset", "category", "minPrice",
    "maxPrice", "minRating", "location", "q",
)


def _wire_params(args: argparse.Namespace) -> dict[str, str]:
    """Collect list/search options as string-encoded query parameters."""
    params: dict[str, str] = {}
    for key in _PARAM_KEYS:
        value = getattr(args, key, None)
        if value is not None:
            params[key] = str(value)
    return params


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, wire the catalog, and run one command."""
    from ecom_insights.cli import runner

    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = setup_logging(verbose=args.verbose)
    logger.info("ecom_insights starting — log file: %s", log_file)

    fmt = args.output_format
    commands = {
        "ingest": lambda c: runner.cmd_ingest(c, args.path, args.analytics),
        "list": lambda c: runner.cmd_list(c, _wire_params(args), fmt),
        "search": lambda c: runner.cmd_list(c, _wire_params(args), fmt),
        "rankings": lambda c: runner.cmd_rankings(c, args.view, args.limit, fmt),
        "categories": lambda c: runner.cmd_categories(c, fmt),
        "metrics": lambda c: runner.cmd_metrics(c, fmt),
        "geography": lambda c: runner.cmd_geography(c, fmt),
        "trends": lambda c: runner.cmd_trends(c, fmt),
    }
    exit_code = runner.run_command(
        partial(runner.open_catalog, seed_path=args.seed),
        commands[args.command],
    )
    logger.info("ecom_insights finished with exit code %d", exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
