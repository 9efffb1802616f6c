"""
Unit Tests - Source Ingestion
"""
import pytest
import polars as pl

from transaction_census.exceptions import IngestionError
from transaction_census.ingestion.batch_loader import (
    FileFormat,
    LoadStatus,
    SourceFileConfig,
    SourceKind,
    SourceLoader,
)
from transaction_census.schema import normalize_header

TRANSACTIONS_CSV = """InvoiceNo,StockCode,Description,Quantity,UnitPrice,InvoiceDate,CustomerID,Country
536365,85123A,WHITE HANGING HEART,6,2.55,12/01/2010 08:26,17850.0,Canada
536366,71053,WHITE METAL LANTERN,6,3.39,12/01/2010 08:28,,United Kingdom
"""

CENSUS_CSV = """Topic,Characteristic,Total,Men,Women,Total_2,Men_2,Women_2,Note,Total_Flag,Men_Flag,Women_Flag,Total_Flag2,Men_Flag2,Women_Flag2,column16
"Population, 2021","Population, 2021",36991981,18226240,18765740,100,49.3,50.7,,,,,,,,
"""


class TestSourceLoader:
    """Tests for SourceLoader"""

    def test_normalize_header(self):
        """Test header normalization"""
        assert normalize_header(" Customer ID ") == "customerid"
        assert normalize_header("Total_Flag2") == "totalflag2"

    def test_load_transactions_csv(self, tmp_path):
        """Test source headers are mapped and values kept as text"""
        path = tmp_path / "online_retail.csv"
        path.write_text(TRANSACTIONS_CSV)

        df = SourceLoader().load_transactions(path)

        assert df.columns == [
            "invoice_no", "stock_code", "description", "quantity",
            "unit_price", "invoice_date", "customer_id", "country",
        ]
        assert df.schema["quantity"] == pl.Utf8
        assert df["customer_id"].to_list() == ["17850.0", None]

    def test_load_census_csv(self, tmp_path):
        """Test census headers including flags and column16"""
        path = tmp_path / "census.csv"
        path.write_text(CENSUS_CSV)

        df = SourceLoader().load_census(path)

        assert "total_2" in df.columns
        assert "women_flag_2" in df.columns
        assert "additional_info" in df.columns
        assert df["topic"][0] == "Population, 2021"

    def test_load_parquet(self, tmp_path, raw_transactions_df):
        """Test Parquet sources"""
        path = tmp_path / "online_retail.parquet"
        raw_transactions_df.write_parquet(path)

        df = SourceLoader().load_transactions(path)

        assert len(df) == len(raw_transactions_df)

    def test_missing_file_raises(self, tmp_path):
        """Test a missing file raises IngestionError and is recorded"""
        loader = SourceLoader()

        with pytest.raises(IngestionError):
            loader.load_transactions(tmp_path / "missing.csv")

        assert loader.results[-1].status == LoadStatus.FAILED

    def test_missing_columns_raise(self, tmp_path):
        """Test a file without required columns is rejected"""
        path = tmp_path / "bad.csv"
        path.write_text("InvoiceNo,StockCode\n1,A\n")

        with pytest.raises(IngestionError, match="missing columns"):
            SourceLoader().load_transactions(path)

    def test_unsupported_format_raises(self, tmp_path):
        """Test unknown file extensions are rejected"""
        path = tmp_path / "online_retail.xlsx"
        path.write_bytes(b"")

        with pytest.raises(IngestionError, match="Unsupported file format"):
            SourceLoader().load_transactions(path)

    def test_load_result(self, tmp_path):
        """Test the audit record of a successful load"""
        path = tmp_path / "online_retail.csv"
        path.write_text(TRANSACTIONS_CSV)

        _, result = SourceLoader().load(
            SourceFileConfig(file_path=path, kind=SourceKind.TRANSACTIONS, file_format=FileFormat.CSV)
        )

        assert result.status == LoadStatus.COMPLETED
        assert result.rows_loaded == 2
        assert result.file_hash is not None
