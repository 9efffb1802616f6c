"""
Unit Tests - Transaction Cleaning
"""
from datetime import datetime

import pytest
import polars as pl

from transaction_census.exceptions import TransformationError
from transaction_census.transformation.cleaners import TransactionCleaner, clean_transactions


class TestTransactionCleaner:
    """Tests for TransactionCleaner"""

    def test_fill_missing(self, raw_transactions_df):
        """Test sentinel substitution for customer id and description"""
        cleaner = TransactionCleaner()

        result = cleaner.fill_missing(raw_transactions_df)

        assert result["customer_id"].null_count() == 0
        assert result["description"].null_count() == 0
        assert result["customer_id"][4] == "Unknown"
        assert result["description"][4] == "No Description"

    def test_customer_id_normalized(self, raw_transactions_df):
        """Test float-formatted customer ids lose the trailing .0"""
        result = TransactionCleaner().fill_missing(raw_transactions_df)

        assert result["customer_id"][0] == "17850"

    def test_numeric_customer_id(self):
        """Test float customer ids read from Parquet become text"""
        df = pl.DataFrame({
            "invoice_no": ["1"],
            "stock_code": ["A"],
            "description": ["X"],
            "quantity": [1],
            "unit_price": [1.0],
            "invoice_date": [datetime(2011, 1, 1)],
            "customer_id": [17850.0],
            "country": ["Canada"],
        })

        result = TransactionCleaner().fill_missing(df)

        assert result["customer_id"].to_list() == ["17850"]

    def test_invoice_no_nulls_left(self, raw_transactions_df):
        """Test invoice number has no default"""
        df = raw_transactions_df.with_columns(
            pl.when(pl.int_range(pl.len()) == 0)
            .then(None)
            .otherwise(pl.col("invoice_no"))
            .alias("invoice_no")
        )

        result = TransactionCleaner().fill_missing(df)

        assert result["invoice_no"].null_count() == 1

    def test_no_nulls_in_filled_columns_after_clean(self, raw_transactions_df):
        """Test cleaned output has no nulls in the defaulted columns"""
        cleaned, _ = TransactionCleaner().clean(raw_transactions_df)

        for col in ("customer_id", "description", "quantity", "unit_price"):
            assert cleaned[col].null_count() == 0

    def test_identical_rows_collapse(self, raw_transactions_df):
        """Test two identical rows leave exactly one"""
        cleaned, stats = TransactionCleaner().clean(raw_transactions_df)

        matches = cleaned.filter(
            (pl.col("invoice_no") == "536365") & (pl.col("stock_code") == "85123A")
        )
        assert len(matches) == 1
        assert stats.duplicates_removed == 1
        assert stats.rows_after_cleaning == 6

    def test_deduplicate_idempotent(self, cleaned_transactions_df):
        """Test deduplicating deduplicated data is a no-op"""
        cleaner = TransactionCleaner()

        once = cleaner.deduplicate(cleaned_transactions_df)
        twice = cleaner.deduplicate(once)

        assert once.equals(twice)
        assert once.equals(cleaned_transactions_df)

    def test_textual_price_variants_are_duplicates(self, raw_transactions_df):
        """Test "2.55" and "2.550" are the same price after coercion"""
        df = pl.concat([
            raw_transactions_df.head(1),
            raw_transactions_df.head(1).with_columns(pl.lit("2.550").alias("unit_price")),
        ])

        cleaned, stats = TransactionCleaner().clean(df)

        assert len(cleaned) == 1
        assert stats.duplicates_removed == 1

    def test_coerce_types(self, cleaned_transactions_df):
        """Test column types after cleaning"""
        schema = cleaned_transactions_df.schema

        assert schema["quantity"] == pl.Int64
        assert schema["unit_price"] == pl.Float64
        assert isinstance(schema["invoice_date"], pl.Datetime)
        assert schema["customer_id"] == pl.Utf8
        assert cleaned_transactions_df["invoice_date"][0] == datetime(2010, 12, 1, 8, 26)

    def test_fallback_datetime_format(self, raw_transactions_df):
        """Test ISO timestamps parse when the configured format does not match"""
        df = raw_transactions_df.with_columns(pl.lit("2010-12-01 08:26:00").alias("invoice_date"))

        cleaned, _ = TransactionCleaner().clean(df)

        assert cleaned["invoice_date"].null_count() == 0

    def test_unparseable_quantity_raises(self, raw_transactions_df):
        """Test a non-numeric quantity stops cleaning"""
        df = raw_transactions_df.with_columns(pl.lit("six").alias("quantity"))

        with pytest.raises(TransformationError):
            TransactionCleaner().clean(df)

    def test_unparseable_date_raises(self, raw_transactions_df):
        """Test an unparseable timestamp stops cleaning"""
        df = raw_transactions_df.with_columns(pl.lit("yesterday").alias("invoice_date"))

        with pytest.raises(TransformationError):
            TransactionCleaner().clean(df)

    def test_missing_column_raises(self, raw_transactions_df):
        """Test a relation without a required column is rejected"""
        with pytest.raises(TransformationError):
            TransactionCleaner().clean(raw_transactions_df.drop("country"))

    def test_input_not_mutated(self, raw_transactions_df):
        """Test the raw relation is unchanged by cleaning"""
        before = raw_transactions_df.clone()

        clean_transactions(raw_transactions_df)

        assert raw_transactions_df.equals(before)

    def test_cleaning_stats(self, raw_transactions_df):
        """Test nulls filled are counted before substitution"""
        _, stats = TransactionCleaner().clean(raw_transactions_df)

        assert stats.total_rows == 7
        assert stats.nulls_filled == 2

    def test_custom_sentinels(self, raw_transactions_df):
        """Test sentinels are configurable"""
        cleaner = TransactionCleaner(unknown_customer="N/A", missing_description="?")

        cleaned, _ = cleaner.clean(raw_transactions_df)

        assert "N/A" in cleaned["customer_id"].to_list()
        assert "?" in cleaned["description"].to_list()
