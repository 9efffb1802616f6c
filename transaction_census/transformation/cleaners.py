"""
Transaction Cleaning Module

Cleaning transformations for raw retail transaction data.
Handles:
- Missing value substitution with sentinel defaults
- Deduplication on the full business key
- Data type standardization
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import polars as pl
import structlog

from transaction_census.config import get_settings
from transaction_census.exceptions import TransformationError
from transaction_census.schema import (
    BUSINESS_KEY,
    COUNTRY,
    CUSTOMER_ID,
    DESCRIPTION,
    INVOICE_DATE,
    INVOICE_NO,
    QUANTITY,
    STOCK_CODE,
    TRANSACTION_COLUMNS,
    UNIT_PRICE,
)

logger = structlog.get_logger(__name__)
settings = get_settings()

# Tried after the configured format when parsing string timestamps
FALLBACK_DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S%.f",
    "%m/%d/%Y %H:%M",
    "%d/%m/%Y %H:%M",
    "%Y-%m-%d",
]


@dataclass
class CleaningStats:
    """Statistics from cleaning operations"""
    total_rows: int
    rows_after_cleaning: int
    nulls_filled: int
    duplicates_removed: int


class TransactionCleaner:
    """
    Cleaner for the raw transaction relation.

    The input DataFrame is treated as immutable; every step returns a new frame.

    Example:
        cleaner = TransactionCleaner()
        cleaned, stats = cleaner.clean(raw_df)
    """

    def __init__(
        self,
        unknown_customer: Optional[str] = None,
        missing_description: Optional[str] = None,
        datetime_format: Optional[str] = None,
    ):
        self.unknown_customer = unknown_customer or settings.pipeline.unknown_customer
        self.missing_description = missing_description or settings.pipeline.missing_description
        self.datetime_format = datetime_format or settings.pipeline.datetime_format

    @property
    def fill_values(self) -> Dict[str, Any]:
        """Sentinel defaults per column"""
        return {
            CUSTOMER_ID: self.unknown_customer,
            DESCRIPTION: self.missing_description,
            QUANTITY: 0,
            UNIT_PRICE: 0.0,
        }

    def _check_columns(self, df: pl.DataFrame) -> None:
        missing = [col for col in TRANSACTION_COLUMNS if col not in df.columns]
        if missing:
            raise TransformationError(f"Transaction relation is missing columns: {missing}")

    def _normalize_customer_id(self, df: pl.DataFrame) -> pl.DataFrame:
        """Customer ids are text; numeric ids such as 17850.0 become "17850"."""
        dtype = df.schema[CUSTOMER_ID]

        if dtype.is_float():
            expr = pl.col(CUSTOMER_ID).cast(pl.Int64).cast(pl.Utf8)
        elif dtype == pl.Utf8:
            expr = pl.col(CUSTOMER_ID).str.strip_chars().str.replace(r"\.0+$", "")
        else:
            expr = pl.col(CUSTOMER_ID).cast(pl.Utf8)

        return df.with_columns(expr.alias(CUSTOMER_ID))

    def fill_missing(self, df: pl.DataFrame) -> pl.DataFrame:
        """Replace nulls in customer id, description, quantity and unit price.

        Invoice number and invoice date have no default and stay null.
        """
        self._check_columns(df)
        df = self._normalize_customer_id(df)

        for col, value in self.fill_values.items():
            dtype = df.schema[col]
            if dtype == pl.Null:
                fill = pl.lit(value)
            else:
                fill = pl.lit(value).cast(dtype)
            df = df.with_columns(pl.col(col).fill_null(fill).alias(col))

        return df

    def deduplicate(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Keep one row per business key.

        The invoice timestamp is itself part of the key, so every row in a
        partition shares the earliest timestamp; the surviving row is the first
        one in input order. Output preserves input order, and applying this to
        already deduplicated data returns it unchanged.
        """
        return df.unique(subset=BUSINESS_KEY, keep="first", maintain_order=True)

    def _parse_datetime(self, df: pl.DataFrame) -> pl.DataFrame:
        dtype = df.schema[INVOICE_DATE]

        if isinstance(dtype, pl.Datetime):
            return df
        if dtype in (pl.Date, pl.Null):
            return df.with_columns(pl.col(INVOICE_DATE).cast(pl.Datetime))

        formats = [self.datetime_format] + [
            fmt for fmt in FALLBACK_DATETIME_FORMATS if fmt != self.datetime_format
        ]
        text = pl.col(INVOICE_DATE).cast(pl.Utf8).str.strip_chars()

        for fmt in formats:
            try:
                return df.with_columns(
                    text.str.strptime(pl.Datetime, fmt, strict=True).alias(INVOICE_DATE)
                )
            except pl.exceptions.PolarsError:
                continue

        raise TransformationError(
            f"Column '{INVOICE_DATE}' could not be parsed with any of {formats}"
        )

    def coerce_types(self, df: pl.DataFrame) -> pl.DataFrame:
        """Cast columns to their declared types; any failure stops the step."""
        try:
            df = df.with_columns([
                pl.col(INVOICE_NO).cast(pl.Utf8),
                pl.col(STOCK_CODE).cast(pl.Utf8),
                pl.col(DESCRIPTION).cast(pl.Utf8),
                pl.col(CUSTOMER_ID).cast(pl.Utf8),
                pl.col(COUNTRY).cast(pl.Utf8),
                pl.col(QUANTITY).cast(pl.Int64, strict=True),
                pl.col(UNIT_PRICE).cast(pl.Float64, strict=True).round(2),
            ])
        except pl.exceptions.PolarsError as e:
            raise TransformationError(f"Type coercion failed: {e}") from e

        return self._parse_datetime(df)

    def clean(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, CleaningStats]:
        """
        Run fill -> coerce -> deduplicate. Duplicates are detected on typed
        values, so textual variants of one price or timestamp collapse.

        Args:
            df: Raw transaction relation

        Returns:
            Cleaned relation and cleaning statistics
        """
        total_rows = len(df)
        logger.info("Cleaning transactions", rows=total_rows)

        self._check_columns(df)
        nulls_before = sum(df[col].null_count() for col in self.fill_values)

        df = self.coerce_types(self.fill_missing(df))
        deduplicated = self.deduplicate(df)
        duplicates_removed = len(df) - len(deduplicated)
        df = deduplicated

        stats = CleaningStats(
            total_rows=total_rows,
            rows_after_cleaning=len(df),
            nulls_filled=nulls_before,
            duplicates_removed=duplicates_removed,
        )

        logger.info(
            "Transactions cleaned",
            rows=stats.rows_after_cleaning,
            nulls_filled=stats.nulls_filled,
            duplicates_removed=stats.duplicates_removed,
        )

        return df, stats


def clean_transactions(df: pl.DataFrame) -> pl.DataFrame:
    """
    Convenience function to clean a transaction DataFrame with default settings.

    Args:
        df: Raw transaction relation

    Returns:
        Cleaned DataFrame
    """
    cleaned, _ = TransactionCleaner().clean(df)
    return cleaned
