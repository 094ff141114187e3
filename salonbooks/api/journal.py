"""
Journal API Routes
Manual journal entries and the trial balance.
"""

from fastapi import APIRouter, Depends, Header, Request, status
from typing import Optional
from datetime import date
import logging

from salonbooks.api.deps import get_current_user, get_uow
from salonbooks.exceptions import NotFound
from salonbooks.schemas import (
    JournalEntry as JournalEntrySchema, JournalEntryCreate, TrialBalanceReport
)
from salonbooks.services.journal_engine import LineInput, record_manual_entry
from salonbooks.services.reports import ReportEngine
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.rate_limiter import limiter, RateLimits
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/journal", response_model=JournalEntrySchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.POSTING)
def create_journal_entry(
    request: Request,
    entry: JournalEntryCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Post a balanced manual journal entry (at least two lines)"""
    lines = [
        LineInput(
            account_id=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
            product_id=line.product_id,
            location_id=line.location_id,
        )
        for line in entry.lines
    ]
    return record_manual_entry(
        uow, current_user, entry.entry_date, lines,
        memo=entry.memo, idempotency_key=idempotency_key,
    )


@router.get("/journal/trial-balance", response_model=TrialBalanceReport)
def get_trial_balance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return ReportEngine(uow).trial_balance(start, end)


@router.get("/journal/{entry_id}", response_model=JournalEntrySchema)
def get_journal_entry(
    entry_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    entry = uow.journal.get_entry(entry_id)
    if not entry:
        raise NotFound(f"Journal entry {entry_id} not found")
    return entry
