"""
Warehouse Writer

Persists pipeline relations into the reporting tables. Each table is written
in its own transaction, parents before children, so a referential violation
fails only the dependent table's insert.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import polars as pl
import structlog
from sqlalchemy import Float, Numeric, Table, delete, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from transaction_census.config import get_settings
from transaction_census.exceptions import PersistenceError
from transaction_census.transformation.dimensions import DimensionalModel
from .connection import get_engine
from .models import (
    Base,
    CleanedCensus,
    Customer,
    Invoice,
    InvoiceDetail,
    JoinedData,
    OUTPUT_TABLES,
    Product,
)

logger = structlog.get_logger(__name__)
settings = get_settings()

TWO_PLACES = Decimal("0.01")


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value)).quantize(TWO_PLACES)


class WarehouseWriter:
    """
    Writes DataFrames into the reporting tables.

    Example:
        writer = WarehouseWriter(engine)
        writer.reset_country("Canada")
        writer.write_model(model)
        writer.write_joined(joined)
    """

    def __init__(self, engine: Optional[Engine] = None, batch_size: Optional[int] = None):
        self.engine = engine or get_engine()
        self.batch_size = batch_size or settings.database.insert_batch_size

    def create_tables(self) -> None:
        """Create any missing output tables"""
        Base.metadata.create_all(self.engine, tables=OUTPUT_TABLES)

    def recreate_tables(self) -> None:
        """Drop and recreate every output table"""
        Base.metadata.drop_all(self.engine, tables=OUTPUT_TABLES)
        Base.metadata.create_all(self.engine, tables=OUTPUT_TABLES)
        logger.info("Output tables recreated", tables=[t.name for t in OUTPUT_TABLES])

    def reset_country(self, country: str) -> None:
        """Delete one country's rows from the country-scoped tables, children first"""
        self.create_tables()
        with self.engine.begin() as conn:
            for model in (JoinedData, InvoiceDetail, Invoice, Product, Customer):
                conn.execute(delete(model).where(model.country == country))
        logger.info("Country rows cleared", country=country)

    def reset_census(self, country: str) -> None:
        self.create_tables()
        with self.engine.begin() as conn:
            conn.execute(delete(CleanedCensus).where(CleanedCensus.country == country))

    def _records(self, df: pl.DataFrame, table: Table) -> List[Dict[str, Any]]:
        """Rows restricted to the table's columns, money as Decimal"""
        columns = [c.name for c in table.columns if c.name in df.columns]
        money = {
            c.name for c in table.columns
            if isinstance(c.type, Numeric) and not isinstance(c.type, Float) and c.name in columns
        }
        records = df.select(columns).to_dicts()
        if money:
            for record in records:
                for col in money:
                    record[col] = _to_decimal(record[col])
        return records

    def write_table(self, df: pl.DataFrame, table: Table) -> int:
        """
        Insert a DataFrame into a table in one transaction.

        Raises:
            PersistenceError: If the insert fails (e.g. a foreign key violation)
        """
        records = self._records(df, table)
        started_at = datetime.utcnow()

        try:
            with self.engine.begin() as conn:
                for i in range(0, len(records), self.batch_size):
                    conn.execute(insert(table), records[i:i + self.batch_size])
        except SQLAlchemyError as e:
            logger.error("Table write failed", table=table.name, rows=len(records), error=str(e))
            raise PersistenceError(f"Writing {table.name} failed: {e}", table=table.name) from e

        logger.info(
            "Table written",
            table=table.name,
            rows=len(records),
            duration_seconds=(datetime.utcnow() - started_at).total_seconds(),
        )
        return len(records)

    def write_model(self, model: DimensionalModel) -> Dict[str, int]:
        """Write the dimensional model in foreign-key order"""
        return {
            "customers": self.write_table(model.customers, Customer.__table__),
            "products": self.write_table(model.products, Product.__table__),
            "invoices": self.write_table(model.invoices, Invoice.__table__),
            "invoice_details": self.write_table(model.line_items, InvoiceDetail.__table__),
        }

    def write_joined(self, joined: pl.DataFrame) -> int:
        return self.write_table(joined, JoinedData.__table__)

    def write_census(self, census: pl.DataFrame) -> int:
        return self.write_table(census, CleanedCensus.__table__)

    def read_table(self, name: str, country: Optional[str] = None) -> pl.DataFrame:
        """Read an output table back into a DataFrame"""
        table = Base.metadata.tables[name]
        query = select(table)
        if country is not None and "country" in table.columns:
            query = query.where(table.c.country == country)

        with self.engine.connect() as conn:
            rows = conn.execute(query).mappings().all()

        if not rows:
            return pl.DataFrame(schema=[c.name for c in table.columns])

        return pl.DataFrame(
            [
                {k: float(v) if isinstance(v, Decimal) else v for k, v in row.items()}
                for row in rows
            ],
            infer_schema_length=None,
        )
