"""
Dimensional Model Builder

Derives the country-scoped reporting tables from cleaned transactions:

- Customers: one row per customer with purchase window and spend
- Products: one row per stock code with representative description/price
- Invoices: one row per (invoice number, customer) with totals
- Invoice line items: one row per retained transaction line

Money columns are aggregated in integer cents, so totals and line prices are
exact to two decimals.
"""

from dataclasses import dataclass
from typing import Optional, Union

import polars as pl
import structlog

from transaction_census.config import get_settings
from transaction_census.schema import (
    COUNTRY,
    CUSTOMER_COLUMNS,
    CUSTOMER_ID,
    DESCRIPTION,
    INVOICE_COLUMNS,
    INVOICE_DATE,
    INVOICE_NO,
    LINE_ITEM_COLUMNS,
    PRODUCT_COLUMNS,
    QUANTITY,
    STOCK_CODE,
    UNIT_PRICE,
)
from .keys import surrogate_key_expr
from .representatives import RepresentativePolicy, pick_representatives

logger = structlog.get_logger(__name__)
settings = get_settings()

PRICE_CENTS = "_price_cents"
LINE_CENTS = "_line_cents"


def to_cents(column: str) -> pl.Expr:
    """Fixed-point cents from a 2-decimal price column"""
    return (pl.col(column) * 100).round(0).cast(pl.Int64)


def from_cents(column: str) -> pl.Expr:
    return (pl.col(column).cast(pl.Float64) / 100).round(2)


@dataclass
class DimensionalModel:
    """The four related tables built for one country"""
    country: str
    customers: pl.DataFrame
    products: pl.DataFrame
    invoices: pl.DataFrame
    line_items: pl.DataFrame

    @property
    def row_counts(self) -> dict:
        return {
            "customers": len(self.customers),
            "products": len(self.products),
            "invoices": len(self.invoices),
            "line_items": len(self.line_items),
        }


class DimensionalBuilder:
    """
    Builds Customer, Product, Invoice and InvoiceLineItem for one country.

    Only rows of the target country with a known customer are used. A cleaned
    transaction whose customer id was missing carries the unknown-customer
    sentinel and is excluded like a null.

    Example:
        builder = DimensionalBuilder(country="Canada")
        model = builder.build(cleaned_transactions)
    """

    def __init__(
        self,
        country: Optional[str] = None,
        policy: Optional[Union[RepresentativePolicy, str]] = None,
        unknown_customer: Optional[str] = None,
    ):
        self.country = country or settings.pipeline.country
        self.policy = RepresentativePolicy(policy or settings.pipeline.product_representative_policy)
        self.unknown_customer = unknown_customer or settings.pipeline.unknown_customer

    def scope(self, transactions: pl.DataFrame) -> pl.DataFrame:
        """
        Restrict cleaned transactions to the target country and known customers.

        Each row gets the invoice_id of its (invoice number, customer) pair.
        A missing invoice number is kept: its lines form one invoice per
        customer whose invoice_no stays null.
        """
        return transactions.filter(
            (pl.col(COUNTRY) == self.country)
            & pl.col(CUSTOMER_ID).is_not_null()
            & (pl.col(CUSTOMER_ID) != self.unknown_customer)
        ).with_columns(
            to_cents(UNIT_PRICE).alias(PRICE_CENTS),
        ).with_columns(
            (pl.col(QUANTITY) * pl.col(PRICE_CENTS)).alias(LINE_CENTS),
            surrogate_key_expr([COUNTRY, INVOICE_NO, CUSTOMER_ID], "invoice_id"),
        )

    def build_customers(self, scoped: pl.DataFrame) -> pl.DataFrame:
        """One row per customer: first/last purchase, distinct invoice numbers, total spend"""
        return (
            scoped.group_by(CUSTOMER_ID)
            .agg([
                pl.col(INVOICE_DATE).min().alias("first_purchase_date"),
                pl.col(INVOICE_DATE).max().alias("last_purchase_date"),
                pl.col(INVOICE_NO).drop_nulls().n_unique().alias("total_purchases"),
                pl.col(LINE_CENTS).sum().alias(LINE_CENTS),
            ])
            .with_columns([
                pl.lit(self.country).alias(COUNTRY),
                from_cents(LINE_CENTS).alias("total_spent"),
            ])
            .select(CUSTOMER_COLUMNS)
            .sort(CUSTOMER_ID)
        )

    def build_products(self, scoped: pl.DataFrame) -> pl.DataFrame:
        """One row per stock code with representative description/price and sales totals"""
        totals = scoped.group_by(STOCK_CODE).agg([
            pl.col(QUANTITY).sum().alias("total_quantity_sold"),
            pl.col(LINE_CENTS).sum().alias(LINE_CENTS),
        ])
        representatives = pick_representatives(
            scoped, STOCK_CODE, [DESCRIPTION, UNIT_PRICE], self.policy
        )

        return (
            totals.join(representatives, on=STOCK_CODE, how="inner")
            .with_columns([
                pl.lit(self.country).alias(COUNTRY),
                from_cents(LINE_CENTS).alias("total_revenue"),
            ])
            .select(PRODUCT_COLUMNS)
            .sort(STOCK_CODE)
        )

    def build_invoices(self, scoped: pl.DataFrame) -> pl.DataFrame:
        """One row per (invoice number, customer) with a deterministic invoice_id"""
        return (
            scoped.group_by(["invoice_id", INVOICE_NO, CUSTOMER_ID])
            .agg([
                pl.col(INVOICE_DATE).min().alias(INVOICE_DATE),
                pl.col(QUANTITY).sum().alias("total_quantity"),
                pl.col(LINE_CENTS).sum().alias(LINE_CENTS),
            ])
            .with_columns([
                pl.lit(self.country).alias(COUNTRY),
                from_cents(LINE_CENTS).alias("total_amount"),
            ])
            .select(INVOICE_COLUMNS)
            .sort([INVOICE_DATE, INVOICE_NO, CUSTOMER_ID], nulls_last=True)
        )

    def build_invoice_line_items(
        self,
        scoped: pl.DataFrame,
        invoices: pl.DataFrame,
        products: pl.DataFrame,
    ) -> pl.DataFrame:
        """
        One row per scoped transaction line that has both a parent invoice and
        a product. Lines without either are dropped (inner joins).
        """
        joined = (
            scoped.join(invoices.select("invoice_id"), on="invoice_id", how="inner")
            .join(products.select(STOCK_CODE), on=STOCK_CODE, how="inner")
        )

        dropped = len(scoped) - len(joined)
        if dropped:
            logger.debug("Line items without parent excluded", rows=dropped)

        # Ordinal of a line among lines sharing (invoice, stock code)
        return (
            joined.sort(["invoice_id", STOCK_CODE, INVOICE_DATE, QUANTITY, UNIT_PRICE], nulls_last=True)
            .with_columns(
                pl.int_range(pl.len()).over(["invoice_id", STOCK_CODE]).alias("_occurrence")
            )
            .with_columns([
                surrogate_key_expr(["invoice_id", STOCK_CODE, "_occurrence"], "invoice_detail_id"),
                from_cents(LINE_CENTS).alias("total_price"),
            ])
            .select(LINE_ITEM_COLUMNS)
        )

    def build(self, transactions: pl.DataFrame) -> DimensionalModel:
        """
        Build all four tables from cleaned transactions.

        Args:
            transactions: Cleaned transaction relation

        Returns:
            DimensionalModel for the builder's country
        """
        scoped = self.scope(transactions)
        logger.info(
            "Building dimensional model",
            country=self.country,
            scoped_rows=len(scoped),
            policy=self.policy.value,
        )

        customers = self.build_customers(scoped)
        products = self.build_products(scoped)
        invoices = self.build_invoices(scoped)
        line_items = self.build_invoice_line_items(scoped, invoices, products)

        model = DimensionalModel(
            country=self.country,
            customers=customers,
            products=products,
            invoices=invoices,
            line_items=line_items,
        )

        logger.info("Dimensional model built", country=self.country, **model.row_counts)
        return model
