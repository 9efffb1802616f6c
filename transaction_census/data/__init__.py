"""
Data Generation Module
"""
from .generators import CensusGenerator, DataGenerator, TransactionGenerator

__all__ = [
    "CensusGenerator",
    "DataGenerator",
    "TransactionGenerator",
]
