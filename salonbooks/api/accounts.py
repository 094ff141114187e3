"""
Chart of Accounts API Routes
"""

from fastapi import APIRouter, Depends, Response, status
from typing import Optional
import logging

from salonbooks.api.deps import get_current_user, get_uow
from salonbooks.schemas import (
    Account as AccountSchema, AccountCreate, AccountUpdate, AccountList
)
from salonbooks.services import chart_of_accounts
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/accounts", response_model=AccountSchema, status_code=status.HTTP_201_CREATED)
def create_account(
    account: AccountCreate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Create a new account"""
    return chart_of_accounts.create_account(
        uow,
        code=account.code,
        name=account.name,
        category=account.category,
        parent_id=account.parent_id,
        is_active=account.is_active,
    )


@router.get("/accounts", response_model=AccountList)
def list_accounts(
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """List accounts ordered by code, filtered by code or name"""
    return chart_of_accounts.list_accounts(uow, search or "", page, page_size)


@router.get("/accounts/{account_id}", response_model=AccountSchema)
def get_account(
    account_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return chart_of_accounts.get_account(uow, account_id)


@router.put("/accounts/{account_id}", response_model=AccountSchema)
def update_account(
    account_id: int,
    account: AccountUpdate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Update an account; only the fields sent are changed"""
    return chart_of_accounts.update_account(uow, account_id, account.model_dump(exclude_unset=True))


@router.delete("/accounts/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Delete an account that no journal line or product references"""
    chart_of_accounts.delete_account(uow, account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
