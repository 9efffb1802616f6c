"""
Unit Tests - Relation Export
"""
from pathlib import Path

import pytest
import polars as pl

from transaction_census.export import ExportFormat, export_relation


class TestExportRelation:
    """Tests for export_relation"""

    def test_csv(self, tmp_path):
        """Test CSV output with formatted datetimes"""
        df = pl.DataFrame({
            "invoice_no": ["536365"],
            "invoice_date": ["2010-12-01 08:26"],
        }).with_columns(pl.col("invoice_date").str.strptime(pl.Datetime, "%Y-%m-%d %H:%M"))

        path = export_relation(df, "invoices", fmt="csv", output_path=tmp_path)

        assert Path(path) == tmp_path / "invoices.csv"
        assert "2010-12-01 08:26:00" in Path(path).read_text()

    def test_parquet(self, tmp_path, cleaned_transactions_df):
        """Test Parquet output round-trips the relation"""
        path = export_relation(
            cleaned_transactions_df, "cleaned_transactions", fmt=ExportFormat.PARQUET, output_path=tmp_path
        )

        assert path.endswith("cleaned_transactions.parquet")
        written = pl.read_parquet(path)
        assert written.columns == cleaned_transactions_df.columns
        assert len(written) == len(cleaned_transactions_df)

    def test_creates_output_directory(self, tmp_path):
        """Test a missing output directory is created"""
        target = tmp_path / "curated" / "nested"

        export_relation(pl.DataFrame({"a": [1]}), "relation", fmt="csv", output_path=target)

        assert (target / "relation.csv").exists()

    def test_unknown_format_rejected(self, tmp_path):
        """Test an unsupported format raises"""
        with pytest.raises(ValueError):
            export_relation(pl.DataFrame({"a": [1]}), "relation", fmt="xlsx", output_path=tmp_path)
