#!/usr/bin/env python
"""
Command Line Entry Point

Usage:
    transaction-census run --transactions data/raw/online_retail.csv \
        --census data/raw/census_profile_2021.csv
    transaction-census generate-sample --output data/raw
"""

import argparse
import sys
from typing import List, Optional

import structlog

from transaction_census.config import get_settings
from transaction_census.config.logging import configure_logging
from transaction_census.data import DataGenerator
from transaction_census.exceptions import PipelineError
from transaction_census.pipeline import TransactionCensusPipeline

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="transaction-census",
        description="Retail transaction and census ETL",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Logging level (default: {settings.monitoring.log_level})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the full pipeline over two source files")
    run.add_argument("--transactions", required=True, help="Raw transaction file (CSV or Parquet)")
    run.add_argument("--census", required=True, help="Raw census file (CSV or Parquet)")
    run.add_argument(
        "--country",
        default=settings.pipeline.country,
        help=f"Country scoping the dimensional model (default: {settings.pipeline.country})",
    )
    run.add_argument("--database-url", default=None, help="SQLAlchemy URL of the reporting database")
    run.add_argument(
        "--export-format",
        choices=["csv", "parquet"],
        default=settings.data_lake.default_format,
        help="Format of the exported files",
    )
    run.add_argument("--output", default=None, help="Directory for exported files")
    run.add_argument(
        "--policy",
        choices=["minimum", "most_frequent", "latest"],
        default=None,
        help="Product representative policy",
    )
    run.add_argument("--no-persist", action="store_true", help="Skip writing to the database")

    sample = subparsers.add_parser("generate-sample", help="Write synthetic source files")
    sample.add_argument("--output", default=settings.data_lake.raw_path, help="Output directory")
    sample.add_argument("--invoices", type=int, default=1000, help="Number of invoices (default: 1000)")
    sample.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    return parser


def run_pipeline(args: argparse.Namespace) -> int:
    pipeline = TransactionCensusPipeline(
        country=args.country,
        database_url=args.database_url,
        persist=False if args.no_persist else None,
        export_format=args.export_format,
        output_path=args.output,
        policy=args.policy,
    )
    result = pipeline.run_from_files(args.transactions, args.census)

    for name, count in result.row_counts.items():
        print(f"{name:<22} {count:>10}")
    for name, path in result.outputs.items():
        print(f"{name:<22} -> {path}")
    return 0


def generate_sample(args: argparse.Namespace) -> int:
    generator = DataGenerator(output_dir=args.output, seed=args.seed)
    data = generator.generate_all(n_invoices=args.invoices)
    for name, df in data.items():
        print(f"{name:<22} {len(df):>10} rows")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level)

    commands = {
        "run": run_pipeline,
        "generate-sample": generate_sample,
    }
    try:
        return commands[args.command](args)
    except PipelineError as e:
        logger.error("Pipeline failed", error=str(e), error_type=type(e).__name__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
