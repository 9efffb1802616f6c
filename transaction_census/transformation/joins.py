"""
Join Materializer

Flattens the dimensional model into one analytical table at line-item grain.
"""

import polars as pl
import structlog

from transaction_census.schema import (
    CUSTOMER_ID,
    DESCRIPTION,
    INVOICE_DATE,
    INVOICE_NO,
    JOINED_COLUMNS,
    QUANTITY,
    STOCK_CODE,
    UNIT_PRICE,
)
from .dimensions import DimensionalModel

logger = structlog.get_logger(__name__)


class JoinMaterializer:
    """
    Inner-joins Customer -> Invoice -> InvoiceLineItem -> Product.

    Columns that exist at several grains are renamed (invoice totals, product
    description/price, line item quantity/price/total). When every line item
    has its parents the output has exactly one row per line item.
    """

    def materialize(self, model: DimensionalModel) -> pl.DataFrame:
        customers = model.customers
        invoices = model.invoices.select([
            "invoice_id",
            INVOICE_NO,
            INVOICE_DATE,
            CUSTOMER_ID,
            pl.col("total_quantity").alias("invoice_total_quantity"),
            pl.col("total_amount").alias("invoice_total_amount"),
        ])
        line_items = model.line_items.select([
            "invoice_detail_id",
            "invoice_id",
            STOCK_CODE,
            pl.col(QUANTITY).alias("line_item_quantity"),
            pl.col(UNIT_PRICE).alias("line_item_unit_price"),
            pl.col("total_price").alias("line_item_total_price"),
        ])
        products = model.products.select([
            STOCK_CODE,
            pl.col(DESCRIPTION).alias("product_description"),
            pl.col(UNIT_PRICE).alias("product_unit_price"),
        ])

        joined = (
            customers.join(invoices, on=CUSTOMER_ID, how="inner")
            .join(line_items, on="invoice_id", how="inner")
            .join(products, on=STOCK_CODE, how="inner")
            .select(JOINED_COLUMNS)
            .sort([INVOICE_DATE, "invoice_id", "invoice_detail_id"], nulls_last=True)
        )

        if len(joined) != len(model.line_items):
            logger.debug(
                "Joined rows differ from line items",
                joined=len(joined),
                line_items=len(model.line_items),
            )

        logger.info("Joined table materialized", country=model.country, rows=len(joined))
        return joined


def materialize_joined(model: DimensionalModel) -> pl.DataFrame:
    """Convenience function for JoinMaterializer().materialize"""
    return JoinMaterializer().materialize(model)
