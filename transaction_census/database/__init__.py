"""
Database Module
"""
from .connection import init_database, close_database, create_db_engine, get_engine
from .models import Base
from .warehouse import WarehouseWriter

__all__ = [
    "init_database",
    "close_database",
    "create_db_engine",
    "get_engine",
    "Base",
    "WarehouseWriter",
]
