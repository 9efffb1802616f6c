"""
Database Connection Management

SQLAlchemy 2.0 engine handling for the reporting database.
SQLite connections enforce foreign keys so dependent rows cannot be written
before their parents.
"""

from pathlib import Path
from typing import Optional

import structlog
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from transaction_census.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()

# Global engine
_engine: Optional[Engine] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the given URL (defaults to settings).

    In-memory SQLite uses a single shared connection so every session sees
    the same database.
    """
    url = url or settings.database.url
    engine_config = {
        "echo": settings.database.echo if echo is None else echo,
        "future": True,
    }

    if url.startswith("sqlite"):
        engine_config["connect_args"] = {"check_same_thread": False}
        database = make_url(url).database
        if not database or database == ":memory:":
            engine_config["poolclass"] = StaticPool
        else:
            Path(database).parent.mkdir(parents=True, exist_ok=True)
    else:
        engine_config["pool_pre_ping"] = True  # Verify connections before use

    engine = create_engine(url, **engine_config)

    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def init_database(url: Optional[str] = None) -> Engine:
    """
    Initialize the database engine.

    Returns:
        Engine: The initialized database engine
    """
    global _engine

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    _engine = create_db_engine(url)

    # Verify connection
    try:
        with _engine.begin() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection established", url=_engine.url.render_as_string(hide_password=True))
    except SQLAlchemyError as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return _engine


def close_database() -> None:
    """Dispose the engine and its connection pool."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database connection pool closed")


def get_engine() -> Engine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


