"""
Repositories over the ledger tables.

Each repository is bound to the session owned by a UnitOfWork, so every
read and write made while posting one document shares one transaction.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from salonbooks.constants import DocumentStatus, PaymentType, ReferenceType
from salonbooks.models import (
    Account, Product, StockLocation, JournalEntry, JournalLine,
    SalesInvoice, PurchaseBill, Payment, StockMovement, InventoryBalance,
    BankReconciliation, ReconciliationLine, IdempotencyRecord
)

logger = logging.getLogger(__name__)


class AccountRepository:
    """Repository for the chart of accounts"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, account_id: int) -> Optional[Account]:
        return self.session.get(Account, account_id)

    def get_by_code(self, code: str) -> Optional[Account]:
        return self.session.query(Account).filter(Account.code == code).first()

    def get_many(self, account_ids: Iterable[int]) -> dict:
        ids = set(account_ids)
        if not ids:
            return {}
        accounts = self.session.query(Account).filter(Account.id.in_(ids)).all()
        return {a.id: a for a in accounts}

    def search(self, search: str = "", page: int = 1, page_size: int = 20) -> Tuple[List[Account], int]:
        """
        Page through accounts ordered by code.

        Args:
            search: Substring matched against code or name
            page: 1-based page number
            page_size: Rows per page

        Returns:
            (accounts on the page, total matching rows)
        """
        query = self.session.query(Account)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Account.code.ilike(pattern), Account.name.ilike(pattern)))

        total = query.count()
        items = query.order_by(Account.code).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def add(self, account: Account) -> Account:
        self.session.add(account)
        self.session.flush()
        return account

    def delete(self, account: Account):
        self.session.delete(account)
        self.session.flush()

    def has_postings(self, account_id: int) -> bool:
        return self.session.query(JournalLine.id).filter(
            JournalLine.account_id == account_id
        ).first() is not None

    def is_mapped_by_product(self, account_id: int) -> bool:
        return self.session.query(Product.id).filter(
            or_(
                Product.inventory_account_id == account_id,
                Product.cogs_account_id == account_id,
                Product.revenue_account_id == account_id,
            )
        ).first() is not None

    def cogs_account_ids(self) -> set:
        """Accounts any product maps its cost of goods sold to"""
        rows = self.session.query(Product.cogs_account_id).distinct().all()
        return {r.cogs_account_id for r in rows}


class CatalogRepository:
    """Products and stock locations"""

    def __init__(self, session: Session):
        self.session = session

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        return self.session.query(Product).filter(Product.sku == sku).first()

    def get_products(self, product_ids: Iterable[int]) -> dict:
        ids = set(product_ids)
        if not ids:
            return {}
        products = self.session.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in products}

    def list_products(self, search: str = "", page: int = 1, page_size: int = 20) -> Tuple[List[Product], int]:
        query = self.session.query(Product)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.sku.ilike(pattern), Product.name.ilike(pattern)))
        total = query.count()
        items = query.order_by(Product.sku).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def all_products(self) -> List[Product]:
        return self.session.query(Product).order_by(Product.sku).all()

    def get_location(self, location_id: int) -> Optional[StockLocation]:
        return self.session.get(StockLocation, location_id)

    def get_location_by_code(self, code: str) -> Optional[StockLocation]:
        return self.session.query(StockLocation).filter(StockLocation.code == code).first()

    def get_locations(self, location_ids: Iterable[int]) -> dict:
        ids = set(location_ids)
        if not ids:
            return {}
        locations = self.session.query(StockLocation).filter(StockLocation.id.in_(ids)).all()
        return {loc.id: loc for loc in locations}

    def list_locations(self, search: str = "", page: int = 1, page_size: int = 20) -> Tuple[List[StockLocation], int]:
        query = self.session.query(StockLocation)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(StockLocation.code.ilike(pattern), StockLocation.name.ilike(pattern)))
        total = query.count()
        items = query.order_by(StockLocation.code).offset((page - 1) * page_size).limit(page_size).all()
        return items, total

    def add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj


class JournalRepository:
    """Journal entries and their lines, plus the grouped sums reports read"""

    def __init__(self, session: Session):
        self.session = session

    def add_entry(self, entry: JournalEntry) -> JournalEntry:
        self.session.add(entry)
        self.session.flush()
        return entry

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        return self.session.query(JournalEntry).options(
            joinedload(JournalEntry.lines)
        ).filter(JournalEntry.id == entry_id).first()

    def lines_for_entry(self, entry_id: int) -> List[JournalLine]:
        return self.session.query(JournalLine).filter(
            JournalLine.entry_id == entry_id
        ).order_by(JournalLine.line_number).all()

    def count_lines(self) -> int:
        return self.session.query(func.count(JournalLine.id)).scalar() or 0

    def account_totals(self, start: date, end: date, categories: Optional[Sequence[str]] = None):
        """
        Sum debit and credit per account for entries dated within [start, end].

        Returns:
            Rows of (account_id, code, name, category, debit, credit)
        """
        query = self.session.query(
            Account.id.label("account_id"),
            Account.code,
            Account.name,
            Account.category,
            func.coalesce(func.sum(JournalLine.debit), 0).label("debit"),
            func.coalesce(func.sum(JournalLine.credit), 0).label("credit"),
        ).join(
            JournalLine, JournalLine.account_id == Account.id
        ).join(
            JournalEntry, JournalEntry.id == JournalLine.entry_id
        ).filter(
            JournalEntry.posted == True,
            JournalEntry.entry_date >= start,
            JournalEntry.entry_date <= end,
        )

        if categories:
            query = query.filter(Account.category.in_(list(categories)))

        return query.group_by(
            Account.id, Account.code, Account.name, Account.category
        ).order_by(Account.code).all()

    def location_income_totals(self, start: date, end: date):
        """
        Sum INCOME lines tagged with a location, grouped by location.

        Returns:
            Rows of (location_id, code, name, debit, credit)
        """
        return self.session.query(
            StockLocation.id.label("location_id"),
            StockLocation.code,
            StockLocation.name,
            func.coalesce(func.sum(JournalLine.debit), 0).label("debit"),
            func.coalesce(func.sum(JournalLine.credit), 0).label("credit"),
        ).join(
            JournalLine, JournalLine.location_id == StockLocation.id
        ).join(
            JournalEntry, JournalEntry.id == JournalLine.entry_id
        ).join(
            Account, Account.id == JournalLine.account_id
        ).filter(
            JournalEntry.posted == True,
            JournalEntry.entry_date >= start,
            JournalEntry.entry_date <= end,
            Account.category == "INCOME",
        ).group_by(
            StockLocation.id, StockLocation.code, StockLocation.name
        ).order_by(StockLocation.code).all()


class DocumentRepository:
    """Sales invoices, purchase bills and payments"""

    def __init__(self, session: Session):
        self.session = session

    def add(self, document):
        self.session.add(document)
        self.session.flush()
        return document

    def get_invoice(self, invoice_id: int) -> Optional[SalesInvoice]:
        return self.session.get(SalesInvoice, invoice_id)

    def invoice_number_exists(self, number: str) -> bool:
        return self.session.query(SalesInvoice.id).filter(SalesInvoice.number == number).first() is not None

    def get_bill(self, bill_id: int) -> Optional[PurchaseBill]:
        return self.session.get(PurchaseBill, bill_id)

    def bill_number_exists(self, number: str) -> bool:
        return self.session.query(PurchaseBill.id).filter(PurchaseBill.number == number).first() is not None

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        return self.session.get(Payment, payment_id)

    def get_payments(self, payment_ids: Iterable[int]) -> dict:
        ids = set(payment_ids)
        if not ids:
            return {}
        payments = self.session.query(Payment).filter(Payment.id.in_(ids)).all()
        return {p.id: p for p in payments}

    def total_received_for_invoice(self, invoice_id: int):
        return self.session.query(
            func.coalesce(func.sum(Payment.amount), 0)
        ).filter(
            Payment.reference_type == ReferenceType.SALES_INVOICE.value,
            Payment.reference_id == invoice_id,
            Payment.payment_type == PaymentType.IN.value,
            Payment.status == DocumentStatus.POSTED.value,
        ).scalar()

    def unreconciled_payments(self, bank_account_id: Optional[int] = None) -> List[Payment]:
        query = self.session.query(Payment).filter(Payment.reconciled == False)
        if bank_account_id:
            query = query.filter(Payment.bank_account_id == bank_account_id)
        return query.order_by(Payment.payment_date, Payment.id).all()


class InventoryRepository:
    """Stock movements and the running balances kept beside them"""

    def __init__(self, session: Session):
        self.session = session

    def add_movement(self, movement: StockMovement) -> StockMovement:
        self.session.add(movement)
        self.session.flush()
        return movement

    def movements(self, product_id: Optional[int] = None, location_id: Optional[int] = None,
                  as_of: Optional[date] = None) -> List[StockMovement]:
        query = self.session.query(StockMovement)
        if product_id:
            query = query.filter(StockMovement.product_id == product_id)
        if location_id:
            query = query.filter(StockMovement.location_id == location_id)
        if as_of:
            query = query.filter(StockMovement.movement_date <= as_of)
        return query.order_by(StockMovement.movement_date, StockMovement.id).all()

    def movements_for_entry(self, entry_id: int) -> List[StockMovement]:
        return self.session.query(StockMovement).filter(
            StockMovement.journal_entry_id == entry_id
        ).order_by(StockMovement.id).all()

    def get_balance(self, product_id: int, location_id: int) -> Optional[InventoryBalance]:
        return self.session.query(InventoryBalance).filter(
            InventoryBalance.product_id == product_id,
            InventoryBalance.location_id == location_id
        ).first()

    def add_balance(self, balance: InventoryBalance) -> InventoryBalance:
        self.session.add(balance)
        self.session.flush()
        return balance

    def product_balances(self):
        """
        Running quantity and value summed over locations.

        Returns:
            Rows of (product_id, quantity, value)
        """
        return self.session.query(
            InventoryBalance.product_id,
            func.coalesce(func.sum(InventoryBalance.quantity_on_hand), 0).label("quantity"),
            func.coalesce(func.sum(InventoryBalance.inventory_value), 0).label("value"),
        ).group_by(InventoryBalance.product_id).all()

    def clear_balances(self):
        self.session.query(InventoryBalance).delete()
        self.session.flush()


class ReconciliationRepository:

    def __init__(self, session: Session):
        self.session = session

    def add(self, reconciliation: BankReconciliation) -> BankReconciliation:
        self.session.add(reconciliation)
        self.session.flush()
        return reconciliation

    def add_line(self, line: ReconciliationLine) -> ReconciliationLine:
        self.session.add(line)
        self.session.flush()
        return line

    def get(self, reconciliation_id: int) -> Optional[BankReconciliation]:
        return self.session.get(BankReconciliation, reconciliation_id)


class IdempotencyRepository:

    def __init__(self, session: Session):
        self.session = session

    def find(self, scope: str, key: str) -> Optional[IdempotencyRecord]:
        return self.session.query(IdempotencyRecord).filter(
            IdempotencyRecord.scope == scope,
            IdempotencyRecord.key == key
        ).first()

    def remember(self, scope: str, key: str, resource_id: int, created_by: Optional[str] = None) -> IdempotencyRecord:
        record = IdempotencyRecord(scope=scope, key=key, resource_id=resource_id, created_by=created_by)
        self.session.add(record)
        self.session.flush()
        logger.debug(f"Stored idempotency key {scope}:{key} -> {resource_id}")
        return record
