"""
Source File Loader

Batch ingestion of the raw transaction and census files.
Supports:
- CSV and Parquet sources
- Source header normalization to pipeline column names
- Required column checks
- Load audit results
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
import hashlib

import polars as pl
import structlog
from pydantic import BaseModel

from transaction_census.config import get_settings
from transaction_census.exceptions import IngestionError
from transaction_census.schema import (
    CENSUS_COLUMNS,
    CENSUS_HEADERS,
    TRANSACTION_COLUMNS,
    TRANSACTION_HEADERS,
    map_headers,
)

logger = structlog.get_logger(__name__)
settings = get_settings()


class FileFormat(str, Enum):
    """Supported file formats"""
    CSV = "csv"
    PARQUET = "parquet"


class SourceKind(str, Enum):
    """Source relations the pipeline reads"""
    TRANSACTIONS = "transactions"
    CENSUS = "census"


class LoadStatus(str, Enum):
    """Batch load status"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SourceFileConfig:
    """Configuration for reading one source file"""
    file_path: Union[str, Path]
    kind: SourceKind
    file_format: Optional[FileFormat] = None
    delimiter: str = ","
    encoding: str = field(default_factory=lambda: settings.data_lake.csv_encoding)
    null_values: List[str] = field(default_factory=lambda: list(settings.data_lake.null_values))

    def resolved_format(self) -> FileFormat:
        """Explicit format, else inferred from the file extension"""
        if self.file_format is not None:
            return self.file_format
        suffix = Path(self.file_path).suffix.lower().lstrip(".")
        try:
            return FileFormat(suffix)
        except ValueError:
            raise IngestionError(f"Unsupported file format: {suffix or '<none>'}") from None


class LoadResult(BaseModel):
    """Result of a source load"""
    file_path: str
    kind: SourceKind
    status: LoadStatus
    rows_loaded: int = 0
    error_message: Optional[str] = None
    load_duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    file_hash: Optional[str] = None


REQUIRED_COLUMNS: Dict[SourceKind, List[str]] = {
    SourceKind.TRANSACTIONS: TRANSACTION_COLUMNS,
    SourceKind.CENSUS: CENSUS_COLUMNS,
}

HEADER_MAPPINGS: Dict[SourceKind, Dict[str, str]] = {
    SourceKind.TRANSACTIONS: TRANSACTION_HEADERS,
    SourceKind.CENSUS: CENSUS_HEADERS,
}


class SourceLoader:
    """
    Loader for the raw source relations.

    CSV columns are read as text; typing is the cleaners' job.

    Example:
        loader = SourceLoader()
        transactions = loader.load_transactions("data/raw/online_retail.csv")
        census = loader.load_census("data/raw/census_profile_2021.csv")
    """

    def __init__(self):
        self.results: List[LoadResult] = []

    def _compute_file_hash(self, file_path: Path) -> str:
        """Compute MD5 hash of file for audit"""
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    def _read_csv(self, config: SourceFileConfig) -> pl.DataFrame:
        return pl.read_csv(
            config.file_path,
            separator=config.delimiter,
            encoding=config.encoding,
            null_values=config.null_values,
            infer_schema_length=0,
        )

    def _read_parquet(self, config: SourceFileConfig) -> pl.DataFrame:
        return pl.read_parquet(config.file_path)

    def _read_file(self, config: SourceFileConfig) -> pl.DataFrame:
        """Read file based on format"""
        readers = {
            FileFormat.CSV: self._read_csv,
            FileFormat.PARQUET: self._read_parquet,
        }
        return readers[config.resolved_format()](config)

    def normalize_columns(self, df: pl.DataFrame, kind: SourceKind) -> pl.DataFrame:
        """Rename recognised source headers and strip whitespace from the rest"""
        df = df.rename({c: c.strip() for c in df.columns if c != c.strip()})
        renames = map_headers(df.columns, HEADER_MAPPINGS[kind])
        return df.rename(renames) if renames else df

    def _check_required(self, df: pl.DataFrame, kind: SourceKind) -> None:
        missing = [col for col in REQUIRED_COLUMNS[kind] if col not in df.columns]
        if missing:
            raise IngestionError(f"{kind.value} source is missing columns: {missing}")

    def load(self, config: SourceFileConfig) -> Tuple[pl.DataFrame, LoadResult]:
        """
        Load one source file.

        Args:
            config: Source file configuration

        Returns:
            The loaded relation and its LoadResult

        Raises:
            IngestionError: If the file is missing, unreadable or lacks required columns
        """
        file_path = Path(config.file_path)
        started_at = datetime.utcnow()

        result = LoadResult(
            file_path=str(file_path),
            kind=config.kind,
            status=LoadStatus.RUNNING,
            started_at=started_at,
        )

        logger.info("Starting source load", file=str(file_path), kind=config.kind.value)

        try:
            if not file_path.exists():
                raise IngestionError(f"File not found: {file_path}")

            result.file_hash = self._compute_file_hash(file_path)
            df = self._read_file(config)
            df = self.normalize_columns(df, config.kind)
            self._check_required(df, config.kind)

        except (IngestionError, pl.exceptions.PolarsError, OSError) as e:
            result.status = LoadStatus.FAILED
            result.error_message = str(e)
            result.completed_at = datetime.utcnow()
            self.results.append(result)

            logger.error("Source load failed", error=str(e), file=str(file_path))
            if isinstance(e, IngestionError):
                raise
            raise IngestionError(f"Reading {file_path} failed: {e}") from e

        result.status = LoadStatus.COMPLETED
        result.rows_loaded = len(df)
        result.completed_at = datetime.utcnow()
        result.load_duration_seconds = (result.completed_at - started_at).total_seconds()
        self.results.append(result)

        logger.info(
            "Source load completed",
            kind=config.kind.value,
            rows_loaded=result.rows_loaded,
            duration_seconds=result.load_duration_seconds,
        )

        return df, result

    def load_transactions(self, path: Union[str, Path], **kwargs) -> pl.DataFrame:
        """Load the raw transaction relation"""
        df, _ = self.load(SourceFileConfig(file_path=path, kind=SourceKind.TRANSACTIONS, **kwargs))
        return df

    def load_census(self, path: Union[str, Path], **kwargs) -> pl.DataFrame:
        """Load the raw census relation"""
        df, _ = self.load(SourceFileConfig(file_path=path, kind=SourceKind.CENSUS, **kwargs))
        return df
