"""
Test Suite Configuration
"""
import pytest
from typing import Generator

import polars as pl
from sqlalchemy.engine import Engine

from transaction_census.config import Settings
from transaction_census.database.connection import create_db_engine
from transaction_census.database.models import Base
from transaction_census.transformation import DimensionalBuilder, TransactionCleaner


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def test_engine() -> Generator[Engine, None, None]:
    """Create an in-memory database with the reporting schema"""
    engine = create_db_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def raw_transactions_df() -> pl.DataFrame:
    """
    Raw transaction lines as read from CSV (all text).

    Row 3 duplicates row 1, row 5 has no customer or description, row 6 is
    outside Canada.
    """
    return pl.DataFrame({
        "invoice_no": ["536365", "536365", "536365", "536366", "536367", "536368", "536369"],
        "stock_code": ["85123A", "71053", "85123A", "85123A", "22752", "71053", "85123A"],
        "description": [
            "WHITE HANGING HEART",
            "WHITE METAL LANTERN",
            "WHITE HANGING HEART",
            "WHITE HANGING HEART",
            None,
            "WHITE METAL LANTERN",
            "RED HANGING HEART",
        ],
        "quantity": ["6", "6", "6", "2", "3", "1", "1"],
        "unit_price": ["2.55", "3.39", "2.55", "2.55", "7.65", "3.39", "2.95"],
        "invoice_date": [
            "12/01/2010 08:26",
            "12/01/2010 08:26",
            "12/01/2010 08:26",
            "12/02/2010 09:00",
            "12/03/2010 10:00",
            "12/04/2010 11:00",
            "12/05/2010 12:00",
        ],
        "customer_id": ["17850.0", "17850.0", "17850.0", "13047", None, "12583", "13047"],
        "country": ["Canada", "Canada", "Canada", "Canada", "Canada", "France", "Canada"],
    })


@pytest.fixture
def cleaned_transactions_df(raw_transactions_df) -> pl.DataFrame:
    """Cleaned transactions with default settings"""
    cleaned, _ = TransactionCleaner().clean(raw_transactions_df)
    return cleaned


@pytest.fixture
def canada_model(cleaned_transactions_df):
    """Dimensional model for Canada"""
    return DimensionalBuilder(country="Canada", policy="most_frequent").build(cleaned_transactions_df)


@pytest.fixture
def raw_census_df() -> pl.DataFrame:
    """Raw census profile rows including flag and note columns"""
    return pl.DataFrame({
        "topic": ["Population, 2021", "Population, 2021", "Age characteristics"],
        "characteristic": ["Population, 2021", "Total private dwellings", "0 to 14 years"],
        "total": [36991981.0, None, 6012795.0],
        "men": [18226240.0, None, 3078180.0],
        "women": [18765740.0, None, 2934610.0],
        "total_2": [100.0, None, 16.3],
        "men_2": [49.3, None, 16.9],
        "women_2": [50.7, None, 15.6],
        "note": ["1", None, None],
        "total_flag": [None, "A", None],
        "men_flag": [None, "A", None],
        "women_flag": [None, "A", None],
        "total_flag_2": [None, None, "E"],
        "men_flag_2": [None, None, "E"],
        "women_flag_2": [None, None, "E"],
        "additional_info": [None, None, None],
    }, schema_overrides={"additional_info": pl.Utf8})
