from datetime import date

import pytest

from salonbooks.exceptions import BusinessRuleViolation, ReferentialError, ValidationError
from salonbooks.models import BankReconciliation, ReconciliationLine
from salonbooks.services.posting import PostingService


@pytest.fixture
def payments(uow, user, accounts):
    """Three posted incoming payments on the bank account, newest first"""
    service = PostingService(uow, user)
    return [
        service.record_payment(
            payment_date=date(2024, 3, day), amount=amount, payment_type="IN",
            bank_account_id=accounts["1100"], ar_account_id=accounts["1200"],
        ).id
        for day, amount in ((20, 30), (10, 45), (15, 60))
    ]


class TestReconcile:

    def test_reconcile_marks_exactly_the_listed_payments(self, uow, user, accounts, payments):
        reconciliation = PostingService(uow, user).reconcile_bank(
            bank_account_id=accounts["1100"],
            statement_date=date(2024, 3, 31),
            ending_balance=75,
            payment_ids=payments[:2],
        )

        assert sorted(line.payment_id for line in reconciliation.lines) == sorted(payments[:2])
        assert uow.documents.get_payment(payments[0]).reconciled is True
        assert uow.documents.get_payment(payments[1]).reconciled is True
        assert uow.documents.get_payment(payments[2]).reconciled is False

    def test_reconciliation_writes_no_journal_lines(self, uow, user, accounts, payments):
        before = uow.journal.count_lines()
        PostingService(uow, user).reconcile_bank(
            bank_account_id=accounts["1100"], statement_date=date(2024, 3, 31),
            ending_balance=135, payment_ids=payments,
        )
        assert uow.journal.count_lines() == before

    def test_unknown_payment_aborts_with_no_partial_effects(self, uow, user, accounts, payments):
        with pytest.raises(ReferentialError):
            PostingService(uow, user).reconcile_bank(
                bank_account_id=accounts["1100"], statement_date=date(2024, 3, 31),
                ending_balance=75, payment_ids=[payments[0], 99999],
            )

        assert uow.documents.get_payment(payments[0]).reconciled is False
        assert uow.session.query(BankReconciliation).count() == 0
        assert uow.session.query(ReconciliationLine).count() == 0

    def test_already_reconciled_payment_aborts(self, uow, user, accounts, payments):
        service = PostingService(uow, user)
        service.reconcile_bank(
            bank_account_id=accounts["1100"], statement_date=date(2024, 3, 31),
            ending_balance=30, payment_ids=[payments[0]],
        )

        with pytest.raises(BusinessRuleViolation):
            service.reconcile_bank(
                bank_account_id=accounts["1100"], statement_date=date(2024, 4, 30),
                ending_balance=135, payment_ids=[payments[1], payments[0]],
            )
        assert uow.documents.get_payment(payments[1]).reconciled is False

    def test_payment_on_another_bank_account_aborts(self, uow, user, accounts, payments):
        with pytest.raises(BusinessRuleViolation):
            PostingService(uow, user).reconcile_bank(
                bank_account_id=accounts["1000"], statement_date=date(2024, 3, 31),
                ending_balance=30, payment_ids=[payments[0]],
            )

    def test_draft_payment_cannot_be_reconciled(self, uow, user, accounts):
        service = PostingService(uow, user)
        draft = service.record_payment(
            payment_date=date(2024, 3, 1), amount=10, payment_type="IN",
            bank_account_id=accounts["1100"], ar_account_id=accounts["1200"], post=False,
        )
        with pytest.raises(BusinessRuleViolation):
            service.reconcile_bank(
                bank_account_id=accounts["1100"], statement_date=date(2024, 3, 31),
                ending_balance=10, payment_ids=[draft.id],
            )

    def test_repeated_payment_ids_are_rejected(self, uow, user, accounts, payments):
        with pytest.raises(ValidationError):
            PostingService(uow, user).reconcile_bank(
                bank_account_id=accounts["1100"], statement_date=date(2024, 3, 31),
                ending_balance=60, payment_ids=[payments[0], payments[0]],
            )


class TestUnreconciled:

    def test_unreconciled_payments_are_ordered_by_date(self, uow, user, accounts, payments):
        unreconciled = PostingService(uow, user).unreconciled(accounts["1100"])
        assert [p.payment_date for p in unreconciled] == [
            date(2024, 3, 10), date(2024, 3, 15), date(2024, 3, 20),
        ]

    def test_filter_by_bank_account(self, uow, user, accounts, payments):
        assert PostingService(uow, user).unreconciled(accounts["1000"]) == []


class TestBankApi:

    def test_reconcile_over_http(self, client, auth_headers, accounts, payments):
        response = client.post("/api/bank/reconcile", headers=auth_headers, json={
            "bank_account_id": accounts["1100"],
            "statement_date": "2024-03-31",
            "ending_balance": 135,
            "payment_ids": payments,
            "notes": "March statement",
        })
        assert response.status_code == 201
        assert len(response.json()["lines"]) == 3

        remaining = client.get(f"/api/bank/unreconciled?bank_account_id={accounts['1100']}", headers=auth_headers)
        assert remaining.json() == []

    def test_staff_cannot_reconcile(self, client, staff_headers, accounts, payments):
        response = client.post("/api/bank/reconcile", headers=staff_headers, json={
            "bank_account_id": accounts["1100"],
            "statement_date": "2024-03-31",
            "ending_balance": 30,
            "payment_ids": [payments[0]],
        })
        assert response.status_code == 403

    def test_owner_can_reconcile(self, client, owner_headers, accounts, payments):
        response = client.post("/api/bank/reconcile", headers=owner_headers, json={
            "bank_account_id": accounts["1100"],
            "statement_date": "2024-03-31",
            "ending_balance": 30,
            "payment_ids": [payments[0]],
        })
        assert response.status_code == 201
        assert response.json()["created_by"] == "owner-1"

    def test_unknown_payment_is_400(self, client, auth_headers, accounts, payments):
        response = client.post("/api/bank/reconcile", headers=auth_headers, json={
            "bank_account_id": accounts["1100"],
            "statement_date": "2024-03-31",
            "ending_balance": 30,
            "payment_ids": [payments[0], 99999],
        })
        assert response.status_code == 400

        remaining = client.get("/api/bank/unreconciled", headers=auth_headers).json()
        assert len(remaining) == 3
