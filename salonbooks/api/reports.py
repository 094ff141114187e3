"""
Financial Reports API Routes
"""

from fastapi import APIRouter, Depends
from typing import Optional
from datetime import date
import logging

from salonbooks.api.deps import get_current_user, get_uow
from salonbooks.schemas import (
    TrialBalanceReport, ProfitLossReport, BalanceSheetReport, RevenueByLocationReport
)
from salonbooks.services.reports import ReportEngine
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/reports/trial-balance", response_model=TrialBalanceReport)
def trial_balance(
    start: Optional[date] = None,
    end: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return ReportEngine(uow).trial_balance(start, end)


@router.get("/reports/profit-and-loss", response_model=ProfitLossReport)
def profit_and_loss(
    start: Optional[date] = None,
    end: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return ReportEngine(uow).profit_and_loss(start, end)


@router.get("/reports/balance-sheet", response_model=BalanceSheetReport)
def balance_sheet(
    as_of: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return ReportEngine(uow).balance_sheet(as_of)


@router.get("/reports/revenue-by-location", response_model=RevenueByLocationReport)
def revenue_by_location(
    start: Optional[date] = None,
    end: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return ReportEngine(uow).revenue_by_location(start, end)
