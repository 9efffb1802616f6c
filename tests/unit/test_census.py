"""
Unit Tests - Census Cleaning
"""
import pytest
import polars as pl

from transaction_census.exceptions import TransformationError
from transaction_census.schema import CLEANED_CENSUS_COLUMNS, MEASUREMENT_COLUMNS, NOISE_COLUMNS
from transaction_census.transformation.census import CensusCleaner, CensusMetric, clean_census


class TestCensusCleaner:
    """Tests for CensusCleaner"""

    def test_all_null_row_becomes_zeros(self, raw_census_df):
        """Test a row with every measurement missing is zero-filled"""
        cleaned = CensusCleaner().clean(raw_census_df)

        row = cleaned.row(1, named=True)
        for col in MEASUREMENT_COLUMNS:
            assert row[col] == 0.0

    def test_present_values_kept(self, raw_census_df):
        """Test non-null measurements survive unchanged"""
        cleaned = CensusCleaner().clean(raw_census_df)

        assert cleaned["total"][0] == 36991981.0
        assert cleaned["women_2"][2] == 15.6

    def test_noise_columns_dropped(self, raw_census_df):
        """Test flag, note and additional info columns are removed"""
        cleaned = CensusCleaner().clean(raw_census_df)

        for col in NOISE_COLUMNS:
            assert col not in cleaned.columns
        assert cleaned.columns == CLEANED_CENSUS_COLUMNS

    def test_country_label(self, raw_census_df):
        """Test every cleaned row carries the configured country"""
        cleaned = CensusCleaner(country="Canada").clean(raw_census_df)

        assert cleaned["country"].unique().to_list() == ["Canada"]

    def test_text_measurements_cast(self):
        """Test measurements read as text are cast to floats"""
        df = pl.DataFrame({
            "topic": ["Population, 2021"],
            "characteristic": ["Population, 2021"],
            "total": ["100"],
            "men": [None],
            "women": ["52"],
            "total_2": ["100.0"],
            "men_2": ["48.0"],
            "women_2": ["52.0"],
        }, schema_overrides={"men": pl.Utf8})

        cleaned = clean_census(df, country="Canada")

        assert cleaned.schema["total"] == pl.Float64
        assert cleaned["men"][0] == 0.0
        assert cleaned["women"][0] == 52.0

    def test_non_numeric_measurement_raises(self, raw_census_df):
        """Test a non-numeric measurement stops cleaning"""
        df = raw_census_df.with_columns(pl.lit("x").alias("total"))

        with pytest.raises(TransformationError):
            CensusCleaner().clean(df)

    def test_missing_measurement_column_raises(self, raw_census_df):
        """Test a relation without a measurement column is rejected"""
        with pytest.raises(TransformationError):
            CensusCleaner().clean(raw_census_df.drop("men_2"))

    def test_clean_without_noise_columns(self, raw_census_df):
        """Test relations that never had flag columns clean the same"""
        with_noise = CensusCleaner().clean(raw_census_df)
        without_noise = CensusCleaner().clean(raw_census_df.drop(NOISE_COLUMNS))

        assert with_noise.equals(without_noise)


class TestCensusLongForm:
    """Tests for the long-form census view"""

    def test_three_rows_per_census_row(self, raw_census_df):
        """Test each wide row yields Total, Men and Women"""
        cleaner = CensusCleaner()
        cleaned = cleaner.clean(raw_census_df)

        metrics = list(cleaner.iter_long(cleaned))

        assert len(metrics) == 3 * len(cleaned)
        assert [m.metric for m in metrics[:3]] == ["Total", "Men", "Women"]

    def test_long_form_values(self, raw_census_df):
        """Test long-form values match the wide columns"""
        cleaner = CensusCleaner()
        cleaned = cleaner.clean(raw_census_df)

        first = next(cleaner.iter_long(cleaned))

        assert first == CensusMetric(
            country="Canada",
            topic="Population, 2021",
            characteristic="Population, 2021",
            metric="Total",
            value=36991981.0,
        )

    def test_iter_long_is_lazy(self, raw_census_df):
        """Test the long form is a generator"""
        cleaner = CensusCleaner()

        iterator = cleaner.iter_long(cleaner.clean(raw_census_df))

        assert iter(iterator) is iterator

    def test_to_long_frame(self, raw_census_df):
        """Test the materialized long form"""
        cleaner = CensusCleaner()
        long_df = cleaner.to_long_frame(cleaner.clean(raw_census_df))

        assert long_df.columns == ["country", "topic", "characteristic", "metric", "value"]
        assert len(long_df) == 9
        assert long_df.filter(pl.col("metric") == "Men")["value"].to_list() == [
            18226240.0, 0.0, 3078180.0,
        ]
