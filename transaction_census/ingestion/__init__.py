"""
Data Ingestion Module
"""
from .batch_loader import SourceLoader, SourceFileConfig, SourceKind, FileFormat

__all__ = [
    "SourceLoader",
    "SourceFileConfig",
    "SourceKind",
    "FileFormat",
]
