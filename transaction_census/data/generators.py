"""
Synthetic Data Generator

Generates raw source files shaped like the real inputs, for development and
demos. Includes:
- Retail transaction lines with missing customers/descriptions and exact duplicates
- Census profile rows with missing measurements, flag columns and notes
"""

import random
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import polars as pl
import structlog
from faker import Faker

from transaction_census.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()


# =============================================================================
# CONFIGURATION
# =============================================================================

COUNTRIES = [
    ("Canada", 0.30),
    ("United Kingdom", 0.40),
    ("France", 0.10),
    ("Germany", 0.10),
    ("Australia", 0.10),
]

PRODUCT_WORDS = [
    "LANTERN", "MUG", "CANDLE", "BUNTING", "TEA SET", "DOORMAT",
    "CAKE STAND", "PHOTO FRAME", "LUNCH BAG", "NOTEBOOK", "CLOCK", "COASTER",
]

CENSUS_TOPICS: Dict[str, List[str]] = {
    "Population, 2021": [
        "Population, 2021",
        "Total private dwellings",
        "Private dwellings occupied by usual residents",
    ],
    "Age characteristics": [
        "0 to 14 years",
        "15 to 64 years",
        "65 years and over",
    ],
    "Household and dwelling characteristics": [
        "Single-detached house",
        "Apartment in a building that has five or more storeys",
        "Movable dwelling",
    ],
    "Income of individuals in 2020": [
        "With total income",
        "With market income",
        "With employment income",
    ],
}

# Raw file headers, as found in the source extracts
TRANSACTION_SOURCE_HEADERS = [
    "InvoiceNo", "StockCode", "Description", "Quantity",
    "UnitPrice", "InvoiceDate", "CustomerID", "Country",
]

CENSUS_SOURCE_HEADERS = [
    "Topic", "Characteristic", "Total", "Men", "Women",
    "Total_2", "Men_2", "Women_2", "Note",
    "Total_Flag", "Men_Flag", "Women_Flag",
    "Total_Flag2", "Men_Flag2", "Women_Flag2", "column16",
]


# =============================================================================
# GENERATORS
# =============================================================================

class TransactionGenerator:
    """Generate raw online retail transaction lines"""

    def __init__(
        self,
        n_customers: int = 300,
        n_products: int = 200,
        seed: int = 42,
        datetime_format: Optional[str] = None,
    ):
        self.rng = np.random.default_rng(seed)
        self.random = random.Random(seed)
        self.fake = Faker()
        self.fake.seed_instance(seed)
        self.datetime_format = datetime_format or settings.pipeline.datetime_format

        self.customers = [
            (
                float(12000 + i),
                self.random.choices(
                    [c[0] for c in COUNTRIES], weights=[c[1] for c in COUNTRIES]
                )[0],
            )
            for i in range(n_customers)
        ]
        self.products = [self._product(i) for i in range(n_products)]

    def _product(self, index: int) -> dict:
        descriptions = [
            f"{self.fake.color_name().upper()} {self.random.choice(PRODUCT_WORDS)}"
            for _ in range(self.random.choice([1, 1, 1, 2]))
        ]
        return {
            "stock_code": f"{20000 + index}{self.random.choice(['', '', 'A', 'B'])}",
            "descriptions": descriptions,
            "prices": [round(float(self.rng.uniform(0.29, 19.95)), 2) for _ in descriptions],
        }

    def generate(
        self,
        n_invoices: int = 1000,
        start_date: Optional[datetime] = None,
        missing_customer_rate: float = 0.05,
        missing_description_rate: float = 0.01,
        duplicate_rate: float = 0.02,
        cancellation_rate: float = 0.02,
    ) -> pl.DataFrame:
        """Generate invoices with 1-8 lines each, using the raw source headers"""
        start_date = start_date or datetime(2010, 12, 1, 8, 0)
        rows = []

        for i in range(n_invoices):
            customer_id, country = self.random.choice(self.customers)
            if self.random.random() < missing_customer_rate:
                customer_id = None

            cancelled = self.random.random() < cancellation_rate
            invoice_no = f"{'C' if cancelled else ''}{536365 + i}"
            invoice_date = start_date + timedelta(minutes=int(self.rng.integers(0, 365 * 24 * 60)))

            n_lines = self.rng.choice(
                [1, 2, 3, 4, 5, 6, 7, 8],
                p=[0.25, 0.25, 0.15, 0.12, 0.10, 0.06, 0.04, 0.03],
            )
            for _ in range(n_lines):
                product = self.random.choice(self.products)
                variant = self.random.randrange(len(product["descriptions"]))
                quantity = int(self.rng.choice([1, 2, 3, 6, 12, 24], p=[0.30, 0.20, 0.15, 0.15, 0.12, 0.08]))
                description = product["descriptions"][variant]
                if self.random.random() < missing_description_rate:
                    description = None

                rows.append({
                    "InvoiceNo": invoice_no,
                    "StockCode": product["stock_code"],
                    "Description": description,
                    "Quantity": -quantity if cancelled else quantity,
                    "UnitPrice": product["prices"][variant],
                    "InvoiceDate": invoice_date.strftime(self.datetime_format),
                    "CustomerID": customer_id,
                    "Country": country,
                })

        # Exact duplicate lines, as found in the real extract
        n_duplicates = int(len(rows) * duplicate_rate)
        rows.extend(self.random.choice(rows) for _ in range(n_duplicates))

        return pl.DataFrame(
            rows,
            schema={
                "InvoiceNo": pl.Utf8,
                "StockCode": pl.Utf8,
                "Description": pl.Utf8,
                "Quantity": pl.Int64,
                "UnitPrice": pl.Float64,
                "InvoiceDate": pl.Utf8,
                "CustomerID": pl.Float64,
                "Country": pl.Utf8,
            },
        )


class CensusGenerator:
    """Generate raw census profile rows"""

    def __init__(self, seed: int = 42):
        self.rng = np.random.default_rng(seed)
        self.random = random.Random(seed)

    def _measurement(self, missing_rate: float) -> Optional[float]:
        if self.random.random() < missing_rate:
            return None
        return float(self.rng.integers(0, 5_000_000))

    def generate(self, missing_rate: float = 0.1) -> pl.DataFrame:
        """One row per (topic, characteristic)"""
        rows = []
        for topic, characteristics in CENSUS_TOPICS.items():
            for characteristic in characteristics:
                men = self._measurement(missing_rate)
                women = self._measurement(missing_rate)
                total = None if men is None or women is None else men + women
                row = {
                    "Topic": topic,
                    "Characteristic": characteristic,
                    "Total": total,
                    "Men": men,
                    "Women": women,
                    "Total_2": self._measurement(missing_rate),
                    "Men_2": self._measurement(missing_rate),
                    "Women_2": self._measurement(missing_rate),
                    "Note": "1" if self.random.random() < 0.2 else None,
                    "column16": None,
                }
                for flag in ("Total_Flag", "Men_Flag", "Women_Flag", "Total_Flag2", "Men_Flag2", "Women_Flag2"):
                    row[flag] = self.random.choice([None, None, "A", "E"])
                rows.append(row)

        schema = {header: pl.Utf8 for header in CENSUS_SOURCE_HEADERS}
        schema.update({h: pl.Float64 for h in ("Total", "Men", "Women", "Total_2", "Men_2", "Women_2")})
        return pl.DataFrame(rows, schema=schema).select(CENSUS_SOURCE_HEADERS)


# =============================================================================
# MAIN GENERATOR
# =============================================================================

class DataGenerator:
    """Writes a sample transaction file and census file"""

    def __init__(self, output_dir: Optional[str] = None, seed: int = 42):
        self.output_dir = Path(output_dir or settings.data_lake.raw_path)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.seed = seed

    def generate_all(
        self,
        n_invoices: int = 1000,
        n_customers: int = 300,
        n_products: int = 200,
        save: bool = True,
    ) -> Dict[str, pl.DataFrame]:
        """Generate both source relations"""
        logger.info("Generating synthetic source data", invoices=n_invoices, customers=n_customers)

        data = {
            "online_retail": TransactionGenerator(
                n_customers=n_customers, n_products=n_products, seed=self.seed
            ).generate(n_invoices),
            "census_profile_2021": CensusGenerator(seed=self.seed).generate(),
        }

        if save:
            self._save_data(data)

        return data

    def _save_data(self, data: Dict[str, pl.DataFrame]) -> Dict[str, str]:
        """Save generated data as CSV"""
        paths = {}
        for name, df in data.items():
            csv_path = self.output_dir / f"{name}.csv"
            df.write_csv(csv_path)
            paths[name] = str(csv_path)
            logger.info(f"Saved {name}: {len(df)} rows -> {csv_path}")
        return paths


if __name__ == "__main__":
    DataGenerator().generate_all()
