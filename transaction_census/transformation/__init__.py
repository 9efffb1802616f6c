"""
Data Transformation Module
"""
from .census import CensusCleaner, CensusMetric, clean_census
from .cleaners import CleaningStats, TransactionCleaner, clean_transactions
from .dimensions import DimensionalBuilder, DimensionalModel
from .joins import JoinMaterializer, materialize_joined
from .keys import surrogate_key
from .representatives import RepresentativePolicy, pick_representatives

__all__ = [
    "CensusCleaner",
    "CensusMetric",
    "clean_census",
    "CleaningStats",
    "TransactionCleaner",
    "clean_transactions",
    "DimensionalBuilder",
    "DimensionalModel",
    "JoinMaterializer",
    "materialize_joined",
    "surrogate_key",
    "RepresentativePolicy",
    "pick_representatives",
]
