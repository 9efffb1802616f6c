"""
Analysis Module
"""
from .exploration import (
    census_characteristics,
    census_topics,
    customer_segmentation,
    monthly_sales_trend,
    population_summary,
    product_performance,
)

__all__ = [
    "census_characteristics",
    "census_topics",
    "customer_segmentation",
    "monthly_sales_trend",
    "population_summary",
    "product_performance",
]
