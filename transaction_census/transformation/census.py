"""
Census Cleaning Module

Cleans the census profile relation and exposes a long-form (tidy) view of its
measurements for metric-oriented analysis.
"""

from dataclasses import dataclass, asdict
from typing import Iterator, List, Optional

import polars as pl
import structlog

from transaction_census.config import get_settings
from transaction_census.exceptions import TransformationError
from transaction_census.schema import (
    CENSUS_COLUMNS,
    CHARACTERISTIC,
    CLEANED_CENSUS_COLUMNS,
    COUNTRY,
    LONG_FORM_METRICS,
    MEASUREMENT_COLUMNS,
    NOISE_COLUMNS,
    TOPIC,
)

logger = structlog.get_logger(__name__)
settings = get_settings()

LONG_FORM_SCHEMA = {
    COUNTRY: pl.Utf8,
    TOPIC: pl.Utf8,
    CHARACTERISTIC: pl.Utf8,
    "metric": pl.Utf8,
    "value": pl.Float64,
}


@dataclass(frozen=True)
class CensusMetric:
    """One measurement of one census characteristic"""
    country: Optional[str]
    topic: Optional[str]
    characteristic: Optional[str]
    metric: str
    value: float


class CensusCleaner:
    """
    Cleaner for the census profile relation.

    Example:
        cleaner = CensusCleaner()
        cleaned = cleaner.clean(raw_census_df)
        for metric in cleaner.iter_long(cleaned):
            ...
    """

    def __init__(self, country: Optional[str] = None):
        self.country = country or settings.pipeline.census_country

    def _check_columns(self, df: pl.DataFrame) -> None:
        missing = [col for col in CENSUS_COLUMNS if col not in df.columns]
        if missing:
            raise TransformationError(f"Census relation is missing columns: {missing}")

    def fill_missing(self, df: pl.DataFrame) -> pl.DataFrame:
        """Default every measurement column to 0 when null"""
        self._check_columns(df)
        return df.with_columns([
            pl.col(col).fill_null(
                pl.lit(0) if df.schema[col] == pl.Null else pl.lit(0).cast(df.schema[col])
            )
            for col in MEASUREMENT_COLUMNS
        ])

    def drop_noise_columns(self, df: pl.DataFrame) -> pl.DataFrame:
        """Drop the quality-flag, note and additional-info columns"""
        present = [col for col in NOISE_COLUMNS if col in df.columns]
        if present:
            logger.debug("Dropping census columns", columns=present)
        return df.drop(present)

    def clean(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Run fill -> prune -> cast, then add the constant country label.

        Args:
            df: Raw census relation

        Returns:
            Wide cleaned census relation
        """
        logger.info("Cleaning census profile", rows=len(df))

        df = self.fill_missing(df)
        df = self.drop_noise_columns(df)

        try:
            df = df.with_columns(
                [pl.col(TOPIC).cast(pl.Utf8), pl.col(CHARACTERISTIC).cast(pl.Utf8)]
                + [pl.col(col).cast(pl.Float64, strict=True) for col in MEASUREMENT_COLUMNS]
            )
        except pl.exceptions.PolarsError as e:
            raise TransformationError(f"Census type coercion failed: {e}") from e

        df = df.with_columns(pl.lit(self.country).alias(COUNTRY)).select(CLEANED_CENSUS_COLUMNS)

        logger.info("Census profile cleaned", rows=len(df), country=self.country)
        return df

    def iter_long(self, df: pl.DataFrame) -> Iterator[CensusMetric]:
        """
        Yield one CensusMetric per wide row and metric (Total, Men, Women).

        Works on the cleaned relation; rows without a country column carry
        the cleaner's country.
        """
        for row in df.iter_rows(named=True):
            for metric, column in LONG_FORM_METRICS.items():
                yield CensusMetric(
                    country=row.get(COUNTRY, self.country),
                    topic=row[TOPIC],
                    characteristic=row[CHARACTERISTIC],
                    metric=metric,
                    value=row[column],
                )

    def to_long_frame(self, df: pl.DataFrame) -> pl.DataFrame:
        """Materialize iter_long as a DataFrame for ad-hoc analysis"""
        return pl.DataFrame(
            [asdict(metric) for metric in self.iter_long(df)],
            schema=LONG_FORM_SCHEMA,
        )


def clean_census(df: pl.DataFrame, country: Optional[str] = None) -> pl.DataFrame:
    """Convenience function to clean a census DataFrame"""
    return CensusCleaner(country=country).clean(df)
