"""
Report Engine
Financial statements built from per-account totals. The database sums lines
per account; the functions below only fold those totals, so they can be
exercised without a database.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from salonbooks.config import settings
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.money import ZERO, to_decimal

logger = logging.getLogger(__name__)

# Assets must equal liabilities plus equity to within this amount
BALANCE_SHEET_TOLERANCE = Decimal("0.000001")


def _account_row(row, balance: Decimal) -> dict:
    return {
        "account_id": row.account_id,
        "code": row.code,
        "name": row.name,
        "category": row.category,
        "balance": balance,
    }


def trial_balance(totals: Iterable) -> dict:
    """
    Rows of (account_id, code, name, category, debit, credit) in, trial balance out.
    Rows come back sorted by account code.
    """
    rows = []
    total_debit = ZERO
    total_credit = ZERO

    for row in sorted(totals, key=lambda r: r.code):
        debit = to_decimal(row.debit)
        credit = to_decimal(row.credit)
        rows.append({
            "account_id": row.account_id,
            "code": row.code,
            "name": row.name,
            "category": row.category,
            "debit": debit,
            "credit": credit,
            "balance": debit - credit,
        })
        total_debit += debit
        total_credit += credit

    return {
        "rows": rows,
        "totals": {"debit": total_debit, "credit": total_credit},
    }


def profit_and_loss(totals: Iterable, cogs_account_ids: set) -> dict:
    """
    Income less cost of goods sold less operating expenses.

    Args:
        totals: Per-account debit/credit sums for the period
        cogs_account_ids: Expense accounts that products map their cost of sales to
    """
    income_rows, cogs_rows, expense_rows = [], [], []
    income = cogs = expense = ZERO

    for row in totals:
        debit = to_decimal(row.debit)
        credit = to_decimal(row.credit)
        if row.category == "INCOME":
            amount = credit - debit
            income += amount
            income_rows.append(_account_row(row, amount))
        elif row.category == "EXPENSE":
            amount = debit - credit
            if row.account_id in cogs_account_ids:
                cogs += amount
                cogs_rows.append(_account_row(row, amount))
            else:
                expense += amount
                expense_rows.append(_account_row(row, amount))

    gross_profit = income - cogs
    return {
        "income": income,
        "cogs": cogs,
        "expense": expense,
        "gross_profit": gross_profit,
        "net_profit": gross_profit - expense,
        "income_accounts": income_rows,
        "cogs_accounts": cogs_rows,
        "expense_accounts": expense_rows,
    }


def balance_sheet(totals: Iterable) -> dict:
    """
    Assets, liabilities and equity from cumulative per-account totals.
    Income and expense not yet closed to equity are carried as retained earnings.
    """
    asset_rows, liability_rows, equity_rows = [], [], []
    assets = liabilities = equity = retained_earnings = ZERO

    for row in totals:
        balance = to_decimal(row.debit) - to_decimal(row.credit)
        if row.category == "ASSET":
            assets += balance
            asset_rows.append(_account_row(row, balance))
        elif row.category == "LIABILITY":
            liabilities -= balance
            liability_rows.append(_account_row(row, -balance))
        elif row.category == "EQUITY":
            equity -= balance
            equity_rows.append(_account_row(row, -balance))
        else:
            retained_earnings -= balance

    equity += retained_earnings
    return {
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "retained_earnings": retained_earnings,
        "balanced": abs(assets - liabilities - equity) < BALANCE_SHEET_TOLERANCE,
        "asset_accounts": asset_rows,
        "liability_accounts": liability_rows,
        "equity_accounts": equity_rows,
    }


def revenue_by_location(totals: Iterable) -> list:
    """Rows of (location_id, code, name, debit, credit) over INCOME lines in, revenue per location out"""
    return [
        {
            "location_id": row.location_id,
            "code": row.code,
            "name": row.name,
            "revenue": to_decimal(row.credit) - to_decimal(row.debit),
        }
        for row in totals
    ]


class ReportEngine:
    """Loads grouped totals through the unit of work and folds them into reports"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @staticmethod
    def _period(start: Optional[date], end: Optional[date]):
        return start or settings.report_floor_date, end or settings.report_ceiling_date

    def trial_balance(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        start, end = self._period(start, end)
        report = trial_balance(self.uow.journal.account_totals(start, end))
        logger.debug(f"Trial balance {start}..{end}: {len(report['rows'])} accounts")
        return report

    def profit_and_loss(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        start, end = self._period(start, end)
        totals = self.uow.journal.account_totals(start, end, categories=["INCOME", "EXPENSE"])
        report = profit_and_loss(totals, self.uow.accounts.cogs_account_ids())
        report.update({"start": start, "end": end})
        return report

    def balance_sheet(self, as_of: Optional[date] = None) -> dict:
        as_of = as_of or settings.report_ceiling_date
        report = balance_sheet(self.uow.journal.account_totals(settings.report_floor_date, as_of))
        report["as_of"] = as_of
        if not report["balanced"]:
            logger.warning(
                f"Balance sheet as of {as_of} does not balance: assets {report['assets']}, "
                f"liabilities {report['liabilities']}, equity {report['equity']}"
            )
        return report

    def revenue_by_location(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        start, end = self._period(start, end)
        rows = revenue_by_location(self.uow.journal.location_income_totals(start, end))
        return {"start": start, "end": end, "rows": rows}
