"""
Chart Seed Utility

Populates default data for a new salon ledger:
- Chart of Accounts
- Main stock location
- A sample retail product mapped to the default accounts

Every step is idempotent; existing rows are left alone.
"""

from sqlalchemy.orm import Session
import logging

from salonbooks.models import Account, Product, StockLocation

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULT CHART OF ACCOUNTS
# =============================================================================

DEFAULT_ACCOUNTS = [
    # Assets (1xxx)
    {"code": "1000", "name": "Cash", "category": "ASSET"},
    {"code": "1100", "name": "Bank", "category": "ASSET"},
    {"code": "1200", "name": "Accounts Receivable", "category": "ASSET"},
    {"code": "1300", "name": "Inventory", "category": "ASSET"},
    {"code": "1310", "name": "Retail Products", "category": "ASSET", "parent_code": "1300"},
    {"code": "1320", "name": "Salon Consumables", "category": "ASSET", "parent_code": "1300"},
    {"code": "1500", "name": "Salon Equipment", "category": "ASSET"},

    # Liabilities (2xxx)
    {"code": "2000", "name": "Accounts Payable", "category": "LIABILITY"},
    {"code": "2100", "name": "Gift Cards Outstanding", "category": "LIABILITY"},
    {"code": "2200", "name": "Sales Tax Payable", "category": "LIABILITY"},

    # Equity (3xxx)
    {"code": "3000", "name": "Owner Equity", "category": "EQUITY"},
    {"code": "3100", "name": "Retained Earnings", "category": "EQUITY"},

    # Income (4xxx)
    {"code": "4000", "name": "Sales Revenue", "category": "INCOME"},
    {"code": "4100", "name": "Service Revenue", "category": "INCOME"},
    {"code": "4200", "name": "Tips and Other Income", "category": "INCOME"},

    # Cost of sales (5xxx)
    {"code": "5000", "name": "Cost of Goods Sold", "category": "EXPENSE"},

    # Operating expenses (6xxx)
    {"code": "6000", "name": "Operating Expenses", "category": "EXPENSE"},
    {"code": "6100", "name": "Rent", "category": "EXPENSE", "parent_code": "6000"},
    {"code": "6200", "name": "Utilities", "category": "EXPENSE", "parent_code": "6000"},
    {"code": "6300", "name": "Stylist Wages", "category": "EXPENSE", "parent_code": "6000"},
    {"code": "6400", "name": "Salon Supplies Used", "category": "EXPENSE", "parent_code": "6000"},
    {"code": "6500", "name": "Marketing", "category": "EXPENSE", "parent_code": "6000"},
    {"code": "6600", "name": "Bank Charges", "category": "EXPENSE", "parent_code": "6000"},
]

MAIN_LOCATION = {"code": "MAIN", "name": "Main Salon"}

SAMPLE_PRODUCT = {
    "sku": "SKU-001",
    "name": "Argan Oil Shampoo 250ml",
    "price": 50,
    "cost": 20,
    "inventory_code": "1300",
    "cogs_code": "5000",
    "revenue_code": "4000",
}


def seed_chart_of_accounts(db: Session) -> dict:
    """
    Create the default chart of accounts.

    Returns:
        dict with statistics about what was created
    """
    stats = {"accounts": 0, "skipped": 0}
    accounts_by_code = {}

    # Parents are listed before their children
    for acc_data in DEFAULT_ACCOUNTS:
        existing = db.query(Account).filter(Account.code == acc_data["code"]).first()
        if existing:
            accounts_by_code[acc_data["code"]] = existing
            stats["skipped"] += 1
            continue

        parent_id = None
        parent_code = acc_data.get("parent_code")
        if parent_code and parent_code in accounts_by_code:
            parent_id = accounts_by_code[parent_code].id

        account = Account(
            code=acc_data["code"],
            name=acc_data["name"],
            category=acc_data["category"],
            parent_id=parent_id,
            is_active=True
        )
        db.add(account)
        db.flush()
        accounts_by_code[acc_data["code"]] = account
        stats["accounts"] += 1

    return stats


def seed_main_location(db: Session) -> dict:
    existing = db.query(StockLocation).filter(StockLocation.code == MAIN_LOCATION["code"]).first()
    if existing:
        return {"created": False, "location_id": existing.id, "name": existing.name}

    location = StockLocation(code=MAIN_LOCATION["code"], name=MAIN_LOCATION["name"], is_active=True)
    db.add(location)
    db.flush()
    return {"created": True, "location_id": location.id, "name": location.name}


def seed_sample_product(db: Session) -> dict:
    existing = db.query(Product).filter(Product.sku == SAMPLE_PRODUCT["sku"]).first()
    if existing:
        return {"created": False, "product_id": existing.id}

    codes = {
        code: db.query(Account).filter(Account.code == code).first()
        for code in (SAMPLE_PRODUCT["inventory_code"], SAMPLE_PRODUCT["cogs_code"], SAMPLE_PRODUCT["revenue_code"])
    }
    missing = [code for code, account in codes.items() if account is None]
    if missing:
        logger.warning(f"Sample product not seeded, missing accounts: {', '.join(missing)}")
        return {"created": False, "product_id": None}

    product = Product(
        sku=SAMPLE_PRODUCT["sku"],
        name=SAMPLE_PRODUCT["name"],
        price=SAMPLE_PRODUCT["price"],
        cost=SAMPLE_PRODUCT["cost"],
        inventory_account_id=codes[SAMPLE_PRODUCT["inventory_code"]].id,
        cogs_account_id=codes[SAMPLE_PRODUCT["cogs_code"]].id,
        revenue_account_id=codes[SAMPLE_PRODUCT["revenue_code"]].id,
        is_active=True,
    )
    db.add(product)
    db.flush()
    return {"created": True, "product_id": product.id}


def seed_ledger_defaults(db: Session, with_sample_product: bool = True) -> dict:
    """
    Seed everything a fresh ledger needs and commit.

    Returns:
        dict with the results of each step
    """
    try:
        results = {
            "chart_of_accounts": seed_chart_of_accounts(db),
            "location": seed_main_location(db),
        }
        if with_sample_product:
            results["sample_product"] = seed_sample_product(db)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding ledger defaults: {e}")
        raise

    logger.info(
        f"Seeded ledger: {results['chart_of_accounts']['accounts']} accounts created, "
        f"{results['chart_of_accounts']['skipped']} skipped"
    )
    return results
