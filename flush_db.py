#!/usr/bin/env python3
"""
Full ledger reset - drops every ledger table and recreates it.
WARNING: This destroys ALL accounts, journal entries, documents and stock movements.

Execute from the project root:
    python flush_db.py [--seed]
"""

import sys

from salonbooks.database import engine, Base, SessionLocal
from salonbooks import models  # noqa: F401  registers every table with Base
from salonbooks.utils.chart_seed import seed_ledger_defaults


def flush_database(seed: bool = False):
    print("=" * 60)
    print("FULL LEDGER RESET")
    print("=" * 60)
    print(f"\nDatabase: {engine.url.render_as_string(hide_password=True)}")
    print("\nWARNING: This will DELETE ALL DATA in the ledger!")
    print("This includes: accounts, journal entries, invoices, bills, payments, stock movements.\n")

    confirm = input("Type 'YES' to confirm full ledger reset: ")
    if confirm != "YES":
        print("Aborted. No changes made.")
        return

    print("\nDropping all tables...")
    Base.metadata.drop_all(bind=engine)
    print("✓ All tables dropped")

    print("\nRecreating all tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ All tables created")

    if seed:
        print("\nSeeding default chart of accounts...")
        db = SessionLocal()
        try:
            results = seed_ledger_defaults(db)
        finally:
            db.close()
        print(f"✓ {results['chart_of_accounts']['accounts']} accounts created")

    print("\n" + "=" * 60)
    print("LEDGER RESET COMPLETE!")
    print("=" * 60)
    print("\nPlease restart your FastAPI server.")


if __name__ == "__main__":
    flush_database(seed="--seed" in sys.argv[1:])
