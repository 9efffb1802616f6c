"""
Unit Tests - Joined Table
"""
import polars as pl

from transaction_census.schema import JOINED_COLUMNS
from transaction_census.transformation.dimensions import DimensionalBuilder, DimensionalModel
from transaction_census.transformation.joins import JoinMaterializer, materialize_joined


class TestJoinMaterializer:
    """Tests for JoinMaterializer"""

    def test_one_row_per_line_item(self, canada_model):
        """Test the joined table keeps line-item grain"""
        joined = JoinMaterializer().materialize(canada_model)

        assert len(joined) == len(canada_model.line_items)
        assert joined["invoice_detail_id"].n_unique() == len(joined)

    def test_columns(self, canada_model):
        """Test column set and disambiguated names"""
        joined = materialize_joined(canada_model)

        assert joined.columns == JOINED_COLUMNS

    def test_values_carried_from_each_table(self, canada_model):
        """Test a joined row carries customer, invoice, line and product values"""
        joined = materialize_joined(canada_model)

        row = joined.filter(
            (pl.col("invoice_no") == "536369") & (pl.col("stock_code") == "85123A")
        ).row(0, named=True)

        assert row["customer_id"] == "13047"
        assert row["total_purchases"] == 2
        assert row["invoice_total_quantity"] == 1
        assert row["line_item_unit_price"] == 2.95
        assert row["product_unit_price"] == 2.55
        assert row["product_description"] == "WHITE HANGING HEART"

    def test_orphan_line_items_excluded(self, canada_model):
        """Test line items without a product are dropped from the join"""
        model = DimensionalModel(
            country=canada_model.country,
            customers=canada_model.customers,
            products=canada_model.products.filter(pl.col("stock_code") != "71053"),
            invoices=canada_model.invoices,
            line_items=canada_model.line_items,
        )

        joined = materialize_joined(model)

        assert len(joined) == len(canada_model.line_items) - 1
        assert "71053" not in joined["stock_code"].to_list()

    def test_empty_model(self, cleaned_transactions_df):
        """Test an empty model joins to an empty table"""
        model = DimensionalBuilder(country="Japan").build(cleaned_transactions_df)

        joined = materialize_joined(model)

        assert len(joined) == 0
        assert joined.columns == JOINED_COLUMNS
