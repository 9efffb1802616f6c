"""
Representative Value Selection

When the same product code appears with different descriptions or prices, one
canonical value per code has to be chosen. Each policy here is deterministic
for a given input set, independent of row order.
"""

from enum import Enum
from typing import List, Union

import polars as pl
import structlog

from transaction_census.schema import INVOICE_DATE

logger = structlog.get_logger(__name__)


class RepresentativePolicy(str, Enum):
    """Policies for picking a canonical value per key"""
    MINIMUM = "minimum"  # smallest value by lexical/numeric order
    MOST_FREQUENT = "most_frequent"  # most common value, smallest on ties
    LATEST = "latest"  # value on the most recent row, largest on ties


def pick_minimum(df: pl.DataFrame, key: str, columns: List[str]) -> pl.DataFrame:
    """Smallest value of each column per key"""
    return df.group_by(key).agg([pl.col(col).min() for col in columns])


def pick_most_frequent(df: pl.DataFrame, key: str, columns: List[str]) -> pl.DataFrame:
    """Most frequent value of each column per key, ties broken by the smallest value"""
    result = df.select(key).unique()

    for col in columns:
        counts = (
            df.group_by([key, col])
            .agg(pl.len().alias("_occurrences"))
            .sort([key, "_occurrences", col], descending=[False, True, False])
            .unique(subset=[key], keep="first", maintain_order=True)
            .select([key, col])
        )
        result = result.join(counts, on=key, how="left")

    return result


def pick_latest(
    df: pl.DataFrame,
    key: str,
    columns: List[str],
    order_by: str = INVOICE_DATE,
) -> pl.DataFrame:
    """Value of each column on the most recent row per key"""
    return df.group_by(key).agg([
        pl.col(col).sort_by([order_by, col]).last() for col in columns
    ])


def pick_representatives(
    df: pl.DataFrame,
    key: str,
    columns: List[str],
    policy: Union[RepresentativePolicy, str] = RepresentativePolicy.MOST_FREQUENT,
) -> pl.DataFrame:
    """
    Choose one value per key for each of the given columns.

    Args:
        df: Rows carrying the key and candidate columns
        key: Grouping column (e.g. stock_code)
        columns: Columns to pick a representative for
        policy: RepresentativePolicy or its name

    Returns:
        DataFrame with one row per key
    """
    policy = RepresentativePolicy(policy)

    if policy == RepresentativePolicy.MINIMUM:
        picked = pick_minimum(df, key, columns)
    elif policy == RepresentativePolicy.LATEST:
        picked = pick_latest(df, key, columns)
    else:
        picked = pick_most_frequent(df, key, columns)

    logger.debug("Representatives selected", policy=policy.value, keys=len(picked))
    return picked.sort(key)
