from datetime import date
from decimal import Decimal

import pytest

from salonbooks.exceptions import (
    BusinessRuleViolation, InvalidAmount, InvalidLine, ReferentialError, UnbalancedEntry
)
from salonbooks.models import JournalEntry
from salonbooks.services import chart_of_accounts
from salonbooks.services.journal_engine import LineInput, record_manual_entry, validate_lines


class TestValidateLines:

    def test_balanced_lines_return_totals(self):
        totals = validate_lines([
            LineInput(account_id=1, debit=Decimal("100")),
            LineInput(account_id=2, credit=Decimal("60")),
            LineInput(account_id=3, credit=Decimal("40")),
        ])
        assert totals == (Decimal("100.00"), Decimal("100.00"))

    def test_debit_and_credit_on_one_line_is_rejected(self):
        with pytest.raises(InvalidLine) as exc:
            validate_lines([
                LineInput(account_id=1, debit=Decimal("100"), credit=Decimal("50")),
                LineInput(account_id=2, credit=Decimal("50")),
            ])
        assert "enter either a debit or a credit, not both" in exc.value.message
        assert exc.value.line == 1

    def test_empty_line_is_rejected(self):
        with pytest.raises(InvalidLine) as exc:
            validate_lines([
                LineInput(account_id=1, debit=Decimal("100")),
                LineInput(account_id=2),
            ])
        assert "enter a debit or a credit amount" in exc.value.message
        assert exc.value.line == 2

    def test_negative_amount_is_rejected(self):
        with pytest.raises(InvalidAmount) as exc:
            validate_lines([
                LineInput(account_id=1, debit=Decimal("-5")),
                LineInput(account_id=2, credit=Decimal("5")),
            ])
        assert exc.value.line == 1

    def test_unbalanced_lines_are_rejected(self):
        with pytest.raises(UnbalancedEntry):
            validate_lines([
                LineInput(account_id=1, debit=Decimal("100")),
                LineInput(account_id=2, credit=Decimal("99")),
            ])

    def test_sub_cent_difference_is_tolerated(self):
        total_debit, total_credit = validate_lines([
            LineInput(account_id=1, debit=Decimal("100.004")),
            LineInput(account_id=2, credit=Decimal("100")),
        ])
        assert total_debit == total_credit

    def test_amount_that_rounds_to_zero_is_an_empty_line(self):
        with pytest.raises(InvalidLine) as exc:
            validate_lines([
                LineInput(account_id=1, debit=Decimal("100")),
                LineInput(account_id=2, credit=Decimal("100")),
                LineInput(account_id=1, debit=Decimal("0.004")),
                LineInput(account_id=2, credit=Decimal("0.004")),
            ])
        assert "enter a debit or a credit amount" in exc.value.message
        assert exc.value.line == 3

    def test_sub_cent_credit_beside_a_debit_counts_as_one_side(self):
        totals = validate_lines([
            LineInput(account_id=1, debit=Decimal("25"), credit=Decimal("0.001")),
            LineInput(account_id=2, credit=Decimal("25")),
        ])
        assert totals == (Decimal("25.00"), Decimal("25.00"))

    def test_no_lines_is_unbalanced(self):
        with pytest.raises(UnbalancedEntry):
            validate_lines([])


class TestRecordManualEntry:

    def test_entry_is_written_with_all_lines(self, uow, user, accounts):
        entry = record_manual_entry(uow, user, date(2024, 3, 1), [
            LineInput(account_id=accounts["1000"], debit=Decimal("250")),
            LineInput(account_id=accounts["3000"], credit=Decimal("250")),
        ], memo="Owner contribution")

        stored = uow.journal.get_entry(entry.id)
        assert stored.posted is True
        assert stored.reference_type == "MANUAL"
        assert stored.created_by == "user-1"
        assert stored.total_debit == Decimal("250")
        assert [line.line_number for line in stored.lines] == [1, 2]

    def test_unknown_account_rolls_back_everything(self, uow, user, accounts):
        with pytest.raises(ReferentialError) as exc:
            record_manual_entry(uow, user, date(2024, 3, 1), [
                LineInput(account_id=accounts["1000"], debit=Decimal("10")),
                LineInput(account_id=99999, credit=Decimal("10")),
            ])
        assert exc.value.line == 2
        assert uow.journal.count_lines() == 0
        assert uow.session.query(JournalEntry).count() == 0

    def test_inactive_account_is_rejected(self, uow, user, accounts):
        chart_of_accounts.update_account(uow, accounts["6500"], {"is_active": False})

        with pytest.raises(BusinessRuleViolation):
            record_manual_entry(uow, user, date(2024, 3, 1), [
                LineInput(account_id=accounts["6500"], debit=Decimal("10")),
                LineInput(account_id=accounts["1000"], credit=Decimal("10")),
            ])

    def test_idempotency_key_replays_the_original_entry(self, uow, user, accounts):
        lines = [
            LineInput(account_id=accounts["6100"], debit=Decimal("1200")),
            LineInput(account_id=accounts["1100"], credit=Decimal("1200")),
        ]
        first = record_manual_entry(uow, user, date(2024, 3, 1), lines, idempotency_key="rent-2024-03")
        second = record_manual_entry(uow, user, date(2024, 3, 1), lines, idempotency_key="rent-2024-03")

        assert first.id == second.id
        assert uow.session.query(JournalEntry).count() == 1

    def test_without_key_duplicates_are_separate_entries(self, uow, user, accounts):
        lines = [
            LineInput(account_id=accounts["6100"], debit=Decimal("1200")),
            LineInput(account_id=accounts["1100"], credit=Decimal("1200")),
        ]
        record_manual_entry(uow, user, date(2024, 3, 1), lines)
        record_manual_entry(uow, user, date(2024, 3, 1), lines)

        assert uow.session.query(JournalEntry).count() == 2

    def test_fractional_cent_lines_are_never_stored(self, uow, user, accounts):
        with pytest.raises(InvalidLine):
            record_manual_entry(uow, user, date(2024, 3, 1), [
                LineInput(account_id=accounts["1000"], debit=Decimal("100")),
                LineInput(account_id=accounts["3000"], credit=Decimal("100")),
                LineInput(account_id=accounts["1000"], debit=Decimal("0.004")),
                LineInput(account_id=accounts["3000"], credit=Decimal("0.004")),
            ])
        assert uow.journal.count_lines() == 0
