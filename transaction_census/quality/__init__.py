"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, profile_missing

__all__ = [
    "DataValidator",
    "ValidationResult",
    "profile_missing",
]
