"""
Sample Dataset Generator

Writes a synthetic online retail extract and census profile into data/generated
for local runs of the pipeline.
"""

import argparse
from pathlib import Path

from transaction_census.config.logging import configure_logging
from transaction_census.data import DataGenerator

OUTPUT_DIR = Path(__file__).parent.parent / "data" / "generated"


def main():
    parser = argparse.ArgumentParser(description="Generate sample source files")
    parser.add_argument("--invoices", type=int, default=5000, help="Number of invoices")
    parser.add_argument("--customers", type=int, default=1000, help="Number of customers")
    parser.add_argument("--products", type=int, default=500, help="Number of products")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    configure_logging(log_format="text")
    data = DataGenerator(output_dir=str(OUTPUT_DIR), seed=args.seed).generate_all(
        n_invoices=args.invoices,
        n_customers=args.customers,
        n_products=args.products,
    )

    print(f"Files written to {OUTPUT_DIR}")
    for name, df in data.items():
        print(f"   {name}.csv: {len(df):,} rows")
    print()
    print("Run the pipeline with:")
    print(
        f"   transaction-census run --transactions {OUTPUT_DIR / 'online_retail.csv'}"
        f" --census {OUTPUT_DIR / 'census_profile_2021.csv'}"
    )


if __name__ == "__main__":
    main()
