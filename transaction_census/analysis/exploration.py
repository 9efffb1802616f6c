"""
Exploration Summaries

Batch summary queries run over the joined table and the cleaned census:

- Customer segmentation (invoices, spend, lifetime)
- Product performance by description
- Monthly sales trend
- Census topics, characteristics and population breakdown
"""

from typing import List, Optional

import polars as pl

DEFAULT_POPULATION_TOPIC = "Population, 2021"
DEFAULT_POPULATION_CHARACTERISTICS = [
    "Total private dwellings",
    "Private dwellings occupied by usual residents",
    "Population, 2021",
]


def customer_segmentation(joined: pl.DataFrame) -> pl.DataFrame:
    """Invoices, spend and lifetime in days per customer"""
    return (
        joined.group_by("customer_id")
        .agg([
            pl.col("invoice_id").n_unique().alias("total_invoices"),
            pl.col("line_item_total_price").sum().round(2).alias("total_spent"),
            (pl.col("invoice_date").max() - pl.col("invoice_date").min())
            .dt.total_days()
            .alias("customer_lifetime_days"),
        ])
        .sort("customer_id")
    )


def product_performance(joined: pl.DataFrame) -> pl.DataFrame:
    """Quantity and revenue per product description, highest revenue first"""
    return (
        joined.group_by("product_description")
        .agg([
            pl.col("line_item_quantity").sum().alias("total_quantity_sold"),
            pl.col("line_item_total_price").sum().round(2).alias("total_revenue"),
        ])
        .sort(["total_revenue", "product_description"], descending=[True, False])
    )


def monthly_sales_trend(joined: pl.DataFrame) -> pl.DataFrame:
    """Revenue per calendar month"""
    return (
        joined.with_columns([
            pl.col("invoice_date").dt.year().alias("invoice_year"),
            pl.col("invoice_date").dt.month().alias("invoice_month"),
        ])
        .group_by(["invoice_year", "invoice_month"])
        .agg(pl.col("line_item_total_price").sum().round(2).alias("monthly_revenue"))
        .sort(["invoice_year", "invoice_month"])
    )


def census_topics(census: pl.DataFrame) -> List[str]:
    """Distinct census topics"""
    return census["topic"].drop_nulls().unique().sort().to_list()


def census_characteristics(census: pl.DataFrame) -> pl.DataFrame:
    """Distinct (topic, characteristic) pairs"""
    return census.select(["topic", "characteristic"]).unique().sort(["topic", "characteristic"])


def population_summary(
    census: pl.DataFrame,
    topic: str = DEFAULT_POPULATION_TOPIC,
    characteristics: Optional[List[str]] = None,
) -> pl.DataFrame:
    """Total, men and women per characteristic of one topic, largest total first"""
    characteristics = characteristics or DEFAULT_POPULATION_CHARACTERISTICS
    return (
        census.filter(
            (pl.col("topic") == topic) & pl.col("characteristic").is_in(characteristics)
        )
        .group_by("characteristic")
        .agg([pl.col(col).sum() for col in ("total", "men", "women")])
        .sort(["total", "characteristic"], descending=[True, False])
    )
