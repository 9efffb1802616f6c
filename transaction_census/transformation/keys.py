"""
Deterministic Surrogate Keys

Keys are derived from natural business keys so that rebuilding the model from
unchanged input yields identical identifiers.
"""

import hashlib
from typing import Any, List

import polars as pl

KEY_LENGTH = 16
KEY_SEPARATOR = "\x1f"
NULL_MARKER = "\x00"


def surrogate_key(*parts: Any) -> str:
    """
    Hash natural key parts into a fixed-length hex key.

    None is encoded as NULL_MARKER, so it never collides with the empty string.
    """
    payload = KEY_SEPARATOR.join(NULL_MARKER if part is None else str(part) for part in parts)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def surrogate_key_expr(columns: List[str], alias: str) -> pl.Expr:
    """Polars expression computing surrogate_key over the given columns"""
    return (
        pl.struct(columns)
        .map_elements(
            lambda row: surrogate_key(*(row[col] for col in columns)),
            return_dtype=pl.Utf8,
        )
        .alias(alias)
    )
