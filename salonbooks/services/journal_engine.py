"""
Journal Entry Engine
Validates balanced entries and writes them with all their lines in the
caller's transaction:
- every line carries either a debit or a credit, never both, never neither
- amounts are never negative
- total debits equal total credits (to the cent) and are greater than zero
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from salonbooks.constants import ReferenceType
from salonbooks.exceptions import (
    InvalidAmount, InvalidLine, UnbalancedEntry, ReferentialError, BusinessRuleViolation
)
from salonbooks.models import JournalEntry, JournalLine
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.money import BALANCE_TOLERANCE, ZERO, money, to_decimal
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)


@dataclass
class LineInput:
    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None
    product_id: Optional[int] = None
    location_id: Optional[int] = None


def validate_lines(lines: Sequence[LineInput]) -> Tuple[Decimal, Decimal]:
    """
    Check the double-entry rules for a set of lines.

    Line numbers in error messages are 1-based.

    Returns:
        (total_debit, total_credit) rounded to cents
    """
    total_debit = ZERO
    total_credit = ZERO

    for i, line in enumerate(lines, start=1):
        if to_decimal(line.debit) < 0 or to_decimal(line.credit) < 0:
            raise InvalidAmount(f"Line {i}: amounts cannot be negative", line=i)

        # Sides are judged on the amounts that get stored
        debit = money(line.debit)
        credit = money(line.credit)
        if debit > 0 and credit > 0:
            raise InvalidLine(f"Line {i}: enter either a debit or a credit, not both", line=i)
        if debit == 0 and credit == 0:
            raise InvalidLine(f"Line {i}: enter a debit or a credit amount", line=i)

        total_debit += debit
        total_credit += credit

    if abs(total_debit - total_credit) >= BALANCE_TOLERANCE:
        raise UnbalancedEntry(
            f"Debits and credits must balance. Debits: {total_debit}, Credits: {total_credit}"
        )
    if total_debit <= 0:
        raise UnbalancedEntry("Journal entry total must be greater than zero")

    return total_debit, total_credit


class JournalEntryEngine:
    """Writes validated entries through a unit of work"""

    def __init__(self, uow: UnitOfWork, user: ActingUser):
        self.uow = uow
        self.user = user

    def _check_references(self, lines: Sequence[LineInput]):
        accounts = self.uow.accounts.get_many(line.account_id for line in lines)
        products = self.uow.catalog.get_products(line.product_id for line in lines if line.product_id)
        locations = self.uow.catalog.get_locations(line.location_id for line in lines if line.location_id)

        for i, line in enumerate(lines, start=1):
            account = accounts.get(line.account_id)
            if not account:
                raise ReferentialError(f"Line {i}: account {line.account_id} does not exist", line=i)
            if not account.is_active:
                raise BusinessRuleViolation(f"Line {i}: account {account.code} is inactive", line=i)
            if line.product_id and line.product_id not in products:
                raise ReferentialError(f"Line {i}: product {line.product_id} does not exist", line=i)
            if line.location_id and line.location_id not in locations:
                raise ReferentialError(f"Line {i}: location {line.location_id} does not exist", line=i)

    def post(
        self,
        entry_date: date,
        lines: List[LineInput],
        memo: Optional[str] = None,
        reference_type: str = ReferenceType.MANUAL.value,
        reference_id: Optional[int] = None,
        totals: Optional[Tuple[Decimal, Decimal]] = None,
    ) -> JournalEntry:
        """
        Create a posted entry and its lines inside the current transaction.
        The caller owns the transaction boundary; nothing is committed here.
        """
        total_debit, total_credit = totals or validate_lines(lines)
        self._check_references(lines)

        entry = JournalEntry(
            entry_date=entry_date,
            memo=memo,
            posted=True,
            reference_type=reference_type,
            reference_id=reference_id,
            total_debit=total_debit,
            total_credit=total_credit,
            created_by=self.user.id,
        )
        self.uow.journal.add_entry(entry)

        for line_number, line in enumerate(lines, start=1):
            entry.lines.append(JournalLine(
                line_number=line_number,
                account_id=line.account_id,
                description=line.description,
                debit=money(line.debit),
                credit=money(line.credit),
                product_id=line.product_id,
                location_id=line.location_id,
            ))
        self.uow.session.flush()

        logger.info(
            f"Created journal entry {entry.id} ({reference_type}) with {len(lines)} lines, "
            f"total {total_debit}"
        )
        return entry


def record_manual_entry(
    uow: UnitOfWork,
    user: ActingUser,
    entry_date: date,
    lines: List[LineInput],
    memo: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> JournalEntry:
    """
    Post a manual journal entry.
    Line validation happens before the transaction opens.
    """
    totals = validate_lines(lines)

    with uow:
        if idempotency_key:
            record = uow.idempotency.find(ReferenceType.MANUAL.value, idempotency_key)
            if record:
                logger.info(f"Replayed manual entry {record.resource_id} for key {idempotency_key}")
                return uow.journal.get_entry(record.resource_id)

        entry = JournalEntryEngine(uow, user).post(
            entry_date, lines, memo=memo, reference_type=ReferenceType.MANUAL.value, totals=totals
        )
        if idempotency_key:
            uow.idempotency.remember(ReferenceType.MANUAL.value, idempotency_key, entry.id, user.id)

    return entry
