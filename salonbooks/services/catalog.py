"""
Products and stock locations, limited to what postings need.
"""

import logging

from salonbooks.exceptions import DuplicateCode, NotFound, ReferentialError, ValidationError
from salonbooks.models import Product, StockLocation
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.money import to_decimal

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("inventory_account_id", "cogs_account_id", "revenue_account_id")


def _check_accounts(uow: UnitOfWork, data: dict):
    for field in ACCOUNT_FIELDS:
        account_id = data.get(field)
        if account_id is not None and not uow.accounts.get(account_id):
            raise ReferentialError(f"{field}: account {account_id} does not exist")


def _check_prices(data: dict):
    for field in ("price", "cost"):
        if data.get(field) is not None and to_decimal(data[field]) < 0:
            raise ValidationError(f"{field} cannot be negative")


# =============================================================================
# Products
# =============================================================================

def create_product(uow: UnitOfWork, data: dict) -> Product:
    _check_prices(data)

    with uow:
        if uow.catalog.get_product_by_sku(data["sku"]):
            raise DuplicateCode(f"Product SKU {data['sku']} already exists")
        _check_accounts(uow, data)

        product = uow.catalog.add(Product(**data))

    logger.info(f"Created product {product.sku} - {product.name}")
    return product


def get_product(uow: UnitOfWork, product_id: int) -> Product:
    product = uow.catalog.get_product(product_id)
    if not product:
        raise NotFound(f"Product {product_id} not found")
    return product


def list_products(uow: UnitOfWork, search: str = "", page: int = 1, page_size: int = 20) -> dict:
    items, total = uow.catalog.list_products(search, page, page_size)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def update_product(uow: UnitOfWork, product_id: int, changes: dict) -> Product:
    _check_prices(changes)

    with uow:
        product = get_product(uow, product_id)
        sku = changes.get("sku")
        if sku and sku != product.sku and uow.catalog.get_product_by_sku(sku):
            raise DuplicateCode(f"Product SKU {sku} already exists")
        _check_accounts(uow, changes)

        for field, value in changes.items():
            if value is not None:
                setattr(product, field, value)
        uow.session.flush()

    logger.info(f"Updated product {product.sku}")
    return product


# =============================================================================
# Locations
# =============================================================================

def create_location(uow: UnitOfWork, data: dict) -> StockLocation:
    with uow:
        if uow.catalog.get_location_by_code(data["code"]):
            raise DuplicateCode(f"Location code {data['code']} already exists")
        location = uow.catalog.add(StockLocation(**data))

    logger.info(f"Created location {location.code} - {location.name}")
    return location


def get_location(uow: UnitOfWork, location_id: int) -> StockLocation:
    location = uow.catalog.get_location(location_id)
    if not location:
        raise NotFound(f"Location {location_id} not found")
    return location


def list_locations(uow: UnitOfWork, search: str = "", page: int = 1, page_size: int = 20) -> dict:
    items, total = uow.catalog.list_locations(search, page, page_size)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def update_location(uow: UnitOfWork, location_id: int, changes: dict) -> StockLocation:
    with uow:
        location = get_location(uow, location_id)
        code = changes.get("code")
        if code and code != location.code and uow.catalog.get_location_by_code(code):
            raise DuplicateCode(f"Location code {code} already exists")

        for field, value in changes.items():
            if value is not None:
                setattr(location, field, value)
        uow.session.flush()

    logger.info(f"Updated location {location.code}")
    return location
