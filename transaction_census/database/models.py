"""
Database Models - Reporting Schema

This module defines the reporting tables produced by the pipeline. Every
country-scoped table carries a country column instead of encoding the country
in its table name.

Dimension Tables:
- Customer: customer purchase window and spend
- Product: representative description/price and sales totals

Fact Tables:
- Invoice: one row per (invoice number, customer)
- InvoiceDetail: invoice line items

Materialized Tables:
- JoinedData: denormalized line-item grain join for reporting tools
- CleanedCensus: wide cleaned census profile
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


MONEY = Numeric(18, 2)


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class Customer(Base):
    """
    Customer Dimension Table

    One row per customer of a country, aggregated over the customer's line items.
    """
    __tablename__ = "customers"

    country: Mapped[str] = mapped_column(String(100), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    first_purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    total_purchases: Mapped[int] = mapped_column(Integer, nullable=False)
    total_spent: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Relationships
    invoices: Mapped[List["Invoice"]] = relationship(back_populates="customer")


class Product(Base):
    """
    Product Dimension Table

    One row per stock code sold in a country.
    """
    __tablename__ = "products"

    country: Mapped[str] = mapped_column(String(100), primary_key=True)
    stock_code: Mapped[str] = mapped_column(String(50), primary_key=True)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_quantity_sold: Mapped[int] = mapped_column(Integer, nullable=False)
    total_revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Relationships
    invoice_details: Mapped[List["InvoiceDetail"]] = relationship(back_populates="product")


# =============================================================================
# FACT TABLES
# =============================================================================

class Invoice(Base):
    """
    Invoice Fact Table

    Keyed by a hash of (country, invoice number, customer id).
    """
    __tablename__ = "invoices"

    invoice_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_no: Mapped[Optional[str]] = mapped_column(String(50))
    invoice_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    customer_id: Mapped[str] = mapped_column(String(50), nullable=False)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Relationships
    customer: Mapped["Customer"] = relationship(back_populates="invoices")
    details: Mapped[List["InvoiceDetail"]] = relationship(back_populates="invoice")

    __table_args__ = (
        ForeignKeyConstraint(
            ["country", "customer_id"],
            ["customers.country", "customers.customer_id"],
        ),
        Index("ix_invoices_country_invoice_no", "country", "invoice_no"),
    )


class InvoiceDetail(Base):
    """
    Invoice Line Item Fact Table

    total_price is quantity * unit_price at two decimals.
    """
    __tablename__ = "invoice_details"

    invoice_detail_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    invoice_id: Mapped[str] = mapped_column(
        String(16), ForeignKey("invoices.invoice_id"), nullable=False
    )
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    stock_code: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Relationships
    invoice: Mapped["Invoice"] = relationship(back_populates="details")
    product: Mapped["Product"] = relationship(back_populates="invoice_details")

    __table_args__ = (
        ForeignKeyConstraint(
            ["country", "stock_code"],
            ["products.country", "products.stock_code"],
        ),
        Index("ix_invoice_details_invoice", "invoice_id"),
    )


# =============================================================================
# MATERIALIZED TABLES
# =============================================================================

class JoinedData(Base):
    """
    Denormalized Analytical Table

    Customer x Invoice x InvoiceDetail x Product at line-item grain.
    """
    __tablename__ = "joined_data"

    invoice_detail_id: Mapped[str] = mapped_column(String(16), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(50), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    first_purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    total_purchases: Mapped[int] = mapped_column(Integer)
    total_spent: Mapped[Decimal] = mapped_column(MONEY)
    invoice_id: Mapped[str] = mapped_column(String(16), nullable=False)
    invoice_no: Mapped[Optional[str]] = mapped_column(String(50))
    invoice_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    invoice_total_quantity: Mapped[int] = mapped_column(Integer)
    invoice_total_amount: Mapped[Decimal] = mapped_column(MONEY)
    stock_code: Mapped[str] = mapped_column(String(50), nullable=False)
    product_description: Mapped[Optional[str]] = mapped_column(String(255))
    product_unit_price: Mapped[Decimal] = mapped_column(MONEY)
    line_item_quantity: Mapped[int] = mapped_column(Integer)
    line_item_unit_price: Mapped[Decimal] = mapped_column(MONEY)
    line_item_total_price: Mapped[Decimal] = mapped_column(MONEY)

    __table_args__ = (
        Index("ix_joined_data_country_customer", "country", "customer_id"),
    )


class CleanedCensus(Base):
    """
    Cleaned Census Profile

    Wide census measurements with the flag and note columns removed.
    """
    __tablename__ = "cleaned_census"

    census_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[Optional[str]] = mapped_column(Text)
    characteristic: Mapped[Optional[str]] = mapped_column(Text)
    total: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    men: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    women: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_2: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    men_2: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    women_2: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    __table_args__ = (
        Index("ix_cleaned_census_country_topic", "country", "topic"),
    )


# Parents before children; deletes run in reverse
OUTPUT_TABLES = [
    Customer.__table__,
    Product.__table__,
    Invoice.__table__,
    InvoiceDetail.__table__,
    JoinedData.__table__,
    CleanedCensus.__table__,
]
