"""
Relation Export

Writes pipeline relations to flat files for reporting and modeling tools, and
shapes the modeling dataset those tools read.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import polars as pl
import structlog

from transaction_census.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

CSV_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class ExportFormat(str, Enum):
    """Supported export formats"""
    CSV = "csv"
    PARQUET = "parquet"


class RelationExporter:
    """
    Writes DataFrames into the curated directory.

    Example:
        exporter = RelationExporter()
        path = exporter.export(joined, "joined_data")
    """

    def __init__(
        self,
        output_path: Optional[Union[str, Path]] = None,
        default_format: Optional[Union[ExportFormat, str]] = None,
    ):
        self.output_path = Path(output_path or settings.data_lake.curated_path)
        self.default_format = ExportFormat(default_format or settings.data_lake.default_format)

        # Ensure output directory exists
        self.output_path.mkdir(parents=True, exist_ok=True)

    def export(
        self,
        df: pl.DataFrame,
        name: str,
        fmt: Optional[Union[ExportFormat, str]] = None,
        timestamped: bool = False,
    ) -> str:
        """
        Write a relation to <output_path>/<name>[_<timestamp>].<ext>.

        Returns:
            Path of the written file
        """
        fmt = ExportFormat(fmt or self.default_format)
        stem = name
        if timestamped:
            stem = f"{name}_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"
        output_file = self.output_path / f"{stem}.{fmt.value}"

        if fmt == ExportFormat.PARQUET:
            df.write_parquet(output_file, use_pyarrow=True)
        else:
            df.write_csv(output_file, datetime_format=CSV_DATETIME_FORMAT)

        logger.info(f"Written {len(df)} rows to {output_file}", relation=name, format=fmt.value)
        return str(output_file)


def build_modeling_frame(joined: pl.DataFrame) -> pl.DataFrame:
    """
    Flatten the joined table into the column set the modeling step reads.

    Keeps quantity, unit_price and total_amount at line-item grain and adds
    time and customer features.
    """
    return (
        joined.select([
            "customer_id",
            "invoice_no",
            "invoice_date",
            "stock_code",
            pl.col("line_item_quantity").alias("quantity"),
            pl.col("line_item_unit_price").alias("unit_price"),
            pl.col("line_item_total_price").alias("total_amount"),
            "invoice_total_amount",
            "total_purchases",
            "total_spent",
            "first_purchase_date",
        ])
        .with_columns([
            pl.col("invoice_date").dt.month().alias("invoice_month"),
            pl.col("invoice_date").dt.weekday().alias("invoice_day_of_week"),
            pl.col("invoice_date").dt.hour().alias("invoice_hour"),
            (pl.col("invoice_date").dt.weekday() >= 6).alias("is_weekend_purchase"),
            (pl.col("invoice_date") - pl.col("first_purchase_date"))
            .dt.total_days()
            .alias("customer_tenure_days"),
            (pl.col("quantity") < 0).alias("is_return"),
        ])
        .drop("first_purchase_date")
    )


def export_relation(
    df: pl.DataFrame,
    name: str,
    fmt: Optional[Union[ExportFormat, str]] = None,
    output_path: Optional[Union[str, Path]] = None,
) -> str:
    """Write one relation with a default RelationExporter"""
    return RelationExporter(output_path=output_path).export(df, name, fmt)
