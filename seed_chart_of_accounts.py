"""
Seed the default salon chart of accounts
Creates the default accounts, the MAIN stock location and a sample product.
Safe to run repeatedly; existing rows are skipped.

Execute from the project root:
    python seed_chart_of_accounts.py [--no-sample-product]
"""
import sys

from salonbooks.database import SessionLocal, engine, Base
from salonbooks import models  # noqa: F401  registers every table with Base
from salonbooks.utils.chart_seed import seed_ledger_defaults


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        results = seed_ledger_defaults(db, with_sample_product="--no-sample-product" not in sys.argv[1:])
    except Exception as e:
        print(f"ERROR: {e}")
        raise
    finally:
        db.close()

    chart = results["chart_of_accounts"]
    print(f"Accounts: {chart['accounts']} created, {chart['skipped']} skipped")

    location = results["location"]
    status = "created" if location["created"] else "already exists"
    print(f"Location {location['name']}: {status}")

    product = results.get("sample_product")
    if product:
        status = "created" if product["created"] else "skipped"
        print(f"Sample product: {status}")


if __name__ == "__main__":
    seed()
