"""
Integration Tests - End-to-End Pipeline
"""
import pytest
import polars as pl

from transaction_census.data import DataGenerator
from transaction_census.database.warehouse import WarehouseWriter
from transaction_census.main import main
from transaction_census.pipeline import TransactionCensusPipeline


class TestTransactionCensusPipeline:
    """Tests for TransactionCensusPipeline"""

    def test_run(self, test_engine, tmp_path, raw_transactions_df, raw_census_df):
        """Test a full run persists, exports and summarizes"""
        pipeline = TransactionCensusPipeline(country="Canada", engine=test_engine, output_path=tmp_path)

        result = pipeline.run(raw_transactions_df, raw_census_df)

        assert result.row_counts["joined_data"] == 4
        assert result.persisted["invoice_details"] == 4
        assert result.persisted["cleaned_census"] == 3
        assert [s.name for s in result.stages] == [
            "clean_transactions", "clean_census", "build_model",
            "materialize_join", "validate", "persist", "export",
        ]
        assert set(result.outputs) == {"joined_data", "cleaned_census", "modeling_dataset"}
        assert (tmp_path / "joined_data.csv").exists()

    def test_rerun_is_idempotent(self, test_engine, tmp_path, raw_transactions_df, raw_census_df):
        """Test running twice yields the same stored rows and keys"""
        pipeline = TransactionCensusPipeline(country="Canada", engine=test_engine, output_path=tmp_path)
        writer = WarehouseWriter(test_engine)

        pipeline.run(raw_transactions_df, raw_census_df)
        first = writer.read_table("joined_data").sort("invoice_detail_id")
        pipeline.run(raw_transactions_df, raw_census_df)
        second = writer.read_table("joined_data").sort("invoice_detail_id")

        assert first.equals(second)
        assert len(writer.read_table("cleaned_census")) == 3

    def test_modeling_dataset(self, tmp_path, raw_transactions_df, raw_census_df):
        """Test the exported modeling file carries the feature columns"""
        pipeline = TransactionCensusPipeline(country="Canada", persist=False, output_path=tmp_path)

        pipeline.run(raw_transactions_df, raw_census_df)
        modeling = pl.read_csv(tmp_path / "modeling_dataset.csv")

        for col in ("quantity", "unit_price", "total_amount", "invoice_month", "customer_tenure_days"):
            assert col in modeling.columns
        assert len(modeling) == 4

    def test_parquet_export(self, tmp_path, raw_transactions_df, raw_census_df):
        """Test Parquet export"""
        pipeline = TransactionCensusPipeline(
            country="Canada", persist=False, output_path=tmp_path, export_format="parquet"
        )

        result = pipeline.run(raw_transactions_df, raw_census_df)

        assert result.outputs["joined_data"].endswith(".parquet")
        assert len(pl.read_parquet(result.outputs["joined_data"])) == 4

    def test_summaries(self, tmp_path, raw_transactions_df, raw_census_df):
        """Test exploration summaries are computed"""
        pipeline = TransactionCensusPipeline(country="Canada", persist=False, export=False)

        result = pipeline.run(raw_transactions_df, raw_census_df)

        segmentation = result.summaries["customer_segmentation"]
        assert segmentation["customer_id"].to_list() == ["13047", "17850"]
        assert result.summaries["census_topics"] == ["Age characteristics", "Population, 2021"]
        assert len(result.summaries["census_characteristics"]) == 3
        assert result.outputs == {}

    def test_run_from_files(self, tmp_path):
        """Test a run over generated sample files"""
        data = DataGenerator(output_dir=str(tmp_path / "raw"), seed=7).generate_all(
            n_invoices=200, n_customers=50, n_products=40
        )
        assert set(data) == {"online_retail", "census_profile_2021"}

        pipeline = TransactionCensusPipeline(
            country="Canada", persist=False, output_path=tmp_path / "curated"
        )
        result = pipeline.run_from_files(
            tmp_path / "raw" / "online_retail.csv",
            tmp_path / "raw" / "census_profile_2021.csv",
        )

        assert result.row_counts["joined_data"] == result.row_counts["line_items"]
        assert result.cleaning_stats.duplicates_removed > 0


class TestCommandLine:
    """Tests for the transaction-census command"""

    def test_generate_and_run(self, tmp_path):
        """Test generate-sample followed by run"""
        raw = tmp_path / "raw"

        assert main(["generate-sample", "--output", str(raw), "--invoices", "100"]) == 0
        assert main([
            "run",
            "--transactions", str(raw / "online_retail.csv"),
            "--census", str(raw / "census_profile_2021.csv"),
            "--database-url", f"sqlite:///{tmp_path / 'warehouse.db'}",
            "--output", str(tmp_path / "curated"),
        ]) == 0

        assert (tmp_path / "curated" / "joined_data.csv").exists()
        assert (tmp_path / "warehouse.db").exists()

    def test_missing_file_exit_code(self, tmp_path):
        """Test a pipeline failure returns a non-zero exit code"""
        code = main([
            "run",
            "--transactions", str(tmp_path / "missing.csv"),
            "--census", str(tmp_path / "missing_census.csv"),
            "--no-persist",
        ])

        assert code == 1

    def test_command_required(self):
        """Test the parser rejects a missing subcommand"""
        with pytest.raises(SystemExit):
            main([])
