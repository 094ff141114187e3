"""
Bank API Routes
Reconciliation of recorded payments against a bank statement.
"""

from fastapi import APIRouter, Depends, status
from typing import List, Optional
import logging

from salonbooks.api.deps import get_current_user, get_uow, require_role
from salonbooks.constants import Role
from salonbooks.schemas import (
    BankReconciliation as BankReconciliationSchema, ReconcileRequest,
    Payment as PaymentSchema
)
from salonbooks.services.posting import PostingService
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/bank/reconcile", response_model=BankReconciliationSchema, status_code=status.HTTP_201_CREATED)
def reconcile_bank(
    reconciliation: ReconcileRequest,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(require_role(Role.ADMIN.value, Role.ACCOUNTANT.value))
):
    """Mark the listed payments reconciled against a statement; all or nothing"""
    return PostingService(uow, current_user).reconcile_bank(
        bank_account_id=reconciliation.bank_account_id,
        statement_date=reconciliation.statement_date,
        ending_balance=reconciliation.ending_balance,
        payment_ids=reconciliation.payment_ids,
        notes=reconciliation.notes,
    )


@router.get("/bank/unreconciled", response_model=List[PaymentSchema])
def list_unreconciled(
    bank_account_id: Optional[int] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return PostingService(uow, current_user).unreconciled(bank_account_id)
