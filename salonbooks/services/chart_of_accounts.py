"""
Chart of Accounts service
"""

import logging
from typing import Optional

from salonbooks.exceptions import (
    AccountInUse, CategoryLocked, DuplicateCode, NotFound,
    ReferencedByLedger, ReferentialError, ValidationError
)
from salonbooks.constants import AccountCategory
from salonbooks.models import Account
from salonbooks.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

CATEGORIES = {c.value for c in AccountCategory}


def _check_category(category: str):
    if category not in CATEGORIES:
        raise ValidationError(f"Category must be one of {', '.join(sorted(CATEGORIES))}")


def create_account(uow: UnitOfWork, code: str, name: str, category: str,
                   parent_id: Optional[int] = None, is_active: bool = True) -> Account:
    code = (code or "").strip()
    if not code:
        raise ValidationError("Account code is required")
    _check_category(category)

    with uow:
        if uow.accounts.get_by_code(code):
            raise DuplicateCode(f"Account code {code} already exists")
        if parent_id and not uow.accounts.get(parent_id):
            raise ReferentialError(f"Parent account {parent_id} does not exist")

        account = uow.accounts.add(Account(
            code=code,
            name=name,
            category=category,
            parent_id=parent_id,
            is_active=is_active,
        ))

    logger.info(f"Created account {account.code} - {account.name} ({account.category})")
    return account


def list_accounts(uow: UnitOfWork, search: str = "", page: int = 1, page_size: int = 20) -> dict:
    if page < 1:
        raise ValidationError("Page must be 1 or greater")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

    items, total = uow.accounts.search(search.strip() if search else "", page, page_size)
    return {"items": items, "total": total, "page": page, "page_size": page_size}


def get_account(uow: UnitOfWork, account_id: int) -> Account:
    account = uow.accounts.get(account_id)
    if not account:
        raise NotFound(f"Account {account_id} not found")
    return account


def update_account(uow: UnitOfWork, account_id: int, changes: dict) -> Account:
    """
    Apply a partial update.
    The category is locked once any journal line references the account.
    """
    with uow:
        account = get_account(uow, account_id)

        if "code" in changes and changes["code"] is not None:
            code = changes["code"].strip()
            if not code:
                raise ValidationError("Account code is required")
            if code != account.code and uow.accounts.get_by_code(code):
                raise DuplicateCode(f"Account code {code} already exists")
            account.code = code

        if "category" in changes and changes["category"] is not None:
            _check_category(changes["category"])
            if changes["category"] != account.category and uow.accounts.has_postings(account.id):
                raise CategoryLocked(
                    f"Account {account.code} has postings; its category cannot change"
                )
            account.category = changes["category"]

        if "parent_id" in changes:
            parent_id = changes["parent_id"]
            if parent_id == account.id:
                raise ValidationError("An account cannot be its own parent")
            if parent_id:
                parent = uow.accounts.get(parent_id)
                if not parent:
                    raise ReferentialError(f"Parent account {parent_id} does not exist")
                seen = set()
                while parent and parent.id not in seen:
                    if parent.parent_id == account.id:
                        raise ValidationError(
                            f"Account {parent.code} is below {account.code}; it cannot become its parent"
                        )
                    seen.add(parent.id)
                    parent = uow.accounts.get(parent.parent_id) if parent.parent_id else None
            account.parent_id = parent_id

        if changes.get("name") is not None:
            account.name = changes["name"]
        if changes.get("is_active") is not None:
            account.is_active = changes["is_active"]

        uow.session.flush()

    logger.info(f"Updated account {account.code}")
    return account


def delete_account(uow: UnitOfWork, account_id: int):
    with uow:
        account = get_account(uow, account_id)
        if uow.accounts.has_postings(account.id):
            raise ReferencedByLedger(f"Account {account.code} is referenced by journal lines")
        if uow.accounts.is_mapped_by_product(account.id):
            raise AccountInUse(f"Account {account.code} is mapped by a product")
        uow.accounts.delete(account)

    logger.info(f"Deleted account {account_id}")
