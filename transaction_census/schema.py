"""
Relation Schemas

Column names used throughout the pipeline and the mapping from the headers
found in the raw source files.
"""

import re
from typing import Dict, List

# =============================================================================
# TRANSACTIONS
# =============================================================================

INVOICE_NO = "invoice_no"
STOCK_CODE = "stock_code"
DESCRIPTION = "description"
QUANTITY = "quantity"
UNIT_PRICE = "unit_price"
INVOICE_DATE = "invoice_date"
CUSTOMER_ID = "customer_id"
COUNTRY = "country"

TRANSACTION_COLUMNS: List[str] = [
    INVOICE_NO,
    STOCK_CODE,
    DESCRIPTION,
    QUANTITY,
    UNIT_PRICE,
    INVOICE_DATE,
    CUSTOMER_ID,
    COUNTRY,
]

# Natural key of a transaction line; rows equal on all of these are duplicates
BUSINESS_KEY: List[str] = [
    INVOICE_NO,
    STOCK_CODE,
    QUANTITY,
    INVOICE_DATE,
    UNIT_PRICE,
    CUSTOMER_ID,
]

TRANSACTION_HEADERS: Dict[str, str] = {
    "invoiceno": INVOICE_NO,
    "invoice": INVOICE_NO,
    "stockcode": STOCK_CODE,
    "description": DESCRIPTION,
    "quantity": QUANTITY,
    "unitprice": UNIT_PRICE,
    "price": UNIT_PRICE,
    "invoicedate": INVOICE_DATE,
    "customerid": CUSTOMER_ID,
    "country": COUNTRY,
}

# =============================================================================
# CENSUS
# =============================================================================

TOPIC = "topic"
CHARACTERISTIC = "characteristic"

MEASUREMENT_COLUMNS: List[str] = ["total", "men", "women", "total_2", "men_2", "women_2"]

FLAG_COLUMNS: List[str] = [
    "total_flag",
    "men_flag",
    "women_flag",
    "total_flag_2",
    "men_flag_2",
    "women_flag_2",
]

NOISE_COLUMNS: List[str] = FLAG_COLUMNS + ["note", "additional_info"]

CENSUS_COLUMNS: List[str] = [TOPIC, CHARACTERISTIC] + MEASUREMENT_COLUMNS

CLEANED_CENSUS_COLUMNS: List[str] = [COUNTRY] + CENSUS_COLUMNS

# Metric label -> wide column exposed by the long-form view
LONG_FORM_METRICS: Dict[str, str] = {
    "Total": "total",
    "Men": "men",
    "Women": "women",
}

CENSUS_HEADERS: Dict[str, str] = {
    "topic": TOPIC,
    "characteristic": CHARACTERISTIC,
    "total": "total",
    "men": "men",
    "women": "women",
    "total2": "total_2",
    "men2": "men_2",
    "women2": "women_2",
    "note": "note",
    "totalflag": "total_flag",
    "menflag": "men_flag",
    "womenflag": "women_flag",
    "totalflag2": "total_flag_2",
    "menflag2": "men_flag_2",
    "womenflag2": "women_flag_2",
    "column16": "additional_info",
    "additionalinfo": "additional_info",
}

# =============================================================================
# OUTPUT RELATIONS
# =============================================================================

CUSTOMER_COLUMNS: List[str] = [
    CUSTOMER_ID,
    COUNTRY,
    "first_purchase_date",
    "last_purchase_date",
    "total_purchases",
    "total_spent",
]

PRODUCT_COLUMNS: List[str] = [
    STOCK_CODE,
    COUNTRY,
    DESCRIPTION,
    UNIT_PRICE,
    "total_quantity_sold",
    "total_revenue",
]

INVOICE_COLUMNS: List[str] = [
    "invoice_id",
    INVOICE_NO,
    INVOICE_DATE,
    CUSTOMER_ID,
    COUNTRY,
    "total_quantity",
    "total_amount",
]

LINE_ITEM_COLUMNS: List[str] = [
    "invoice_detail_id",
    "invoice_id",
    STOCK_CODE,
    COUNTRY,
    QUANTITY,
    UNIT_PRICE,
    "total_price",
]

JOINED_COLUMNS: List[str] = [
    CUSTOMER_ID,
    COUNTRY,
    "first_purchase_date",
    "last_purchase_date",
    "total_purchases",
    "total_spent",
    "invoice_id",
    INVOICE_NO,
    INVOICE_DATE,
    "invoice_total_quantity",
    "invoice_total_amount",
    "invoice_detail_id",
    STOCK_CODE,
    "product_description",
    "product_unit_price",
    "line_item_quantity",
    "line_item_unit_price",
    "line_item_total_price",
]


def normalize_header(header: str) -> str:
    """Reduce a source header to lowercase alphanumerics ("Customer ID" -> "customerid")"""
    return re.sub(r"[^0-9a-z]", "", header.strip().lower())


def map_headers(columns: List[str], mapping: Dict[str, str]) -> Dict[str, str]:
    """
    Build a rename mapping for the columns that match a known source header.

    Unknown columns are left out of the mapping and keep their names.
    """
    renames = {}
    for column in columns:
        target = mapping.get(normalize_header(column))
        if target and target != column:
            renames[column] = target
    return renames
