"""
Posting Service
Turns business documents into balanced journal entries plus their stock
effects, atomically.

Sales invoice, per item:
    Dr Accounts Receivable   line_total
    Cr Revenue               line_total
    Dr COGS                  quantity x unit_cost
    Cr Inventory             quantity x unit_cost
    + OUT stock movement at unit_cost

Purchase bill:
    Dr Inventory             quantity x unit_cost   (per item)
    Cr Accounts Payable      bill total
    + IN stock movement per item

Payment:
    IN:  Dr Bank / Cr Accounts Receivable
    OUT: Dr Accounts Payable / Cr Bank
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from salonbooks.constants import DocumentStatus, MovementType, PaymentType, ReferenceType, Side, enum_value
from salonbooks.exceptions import (
    BusinessRuleViolation, DuplicateNumber, InsufficientStock, MissingAccountMapping,
    ReferentialError, UnbalancedEntry, ValidationError
)
from salonbooks.models import (
    BankReconciliation, Payment, PurchaseBill, PurchaseBillItem,
    ReconciliationLine, SalesInvoice, SalesInvoiceItem
)
from salonbooks.services.inventory import InventoryValuationEngine
from salonbooks.services.journal_engine import JournalEntryEngine, LineInput
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.money import ZERO, money, to_decimal
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)


# =============================================================================
# Recipes
# =============================================================================

@dataclass
class PostingLeg:
    account_id: int
    side: str  # Side value
    amount: Decimal
    description: Optional[str] = None
    product_id: Optional[int] = None
    location_id: Optional[int] = None


@dataclass
class PostingRecipe:
    """Ordered legs a document posts to the journal"""
    reference_type: str
    memo: Optional[str] = None
    legs: List[PostingLeg] = field(default_factory=list)

    def debit(self, account_id: int, amount, description: str = None,
              product_id: int = None, location_id: int = None):
        self.legs.append(PostingLeg(account_id, Side.DEBIT.value, money(amount), description, product_id, location_id))

    def credit(self, account_id: int, amount, description: str = None,
               product_id: int = None, location_id: int = None):
        self.legs.append(PostingLeg(account_id, Side.CREDIT.value, money(amount), description, product_id, location_id))

    def to_lines(self) -> List[LineInput]:
        """Journal lines for the non-zero legs, in recipe order"""
        lines = []
        for leg in self.legs:
            if leg.amount == 0:
                continue
            lines.append(LineInput(
                account_id=leg.account_id,
                debit=leg.amount if leg.side == Side.DEBIT.value else ZERO,
                credit=leg.amount if leg.side == Side.CREDIT.value else ZERO,
                description=leg.description,
                product_id=leg.product_id,
                location_id=leg.location_id,
            ))
        if not lines:
            raise UnbalancedEntry(f"{self.reference_type} has nothing to post: every amount is zero")
        return lines


def build_sales_recipe(invoice: SalesInvoice, products: dict,
                       revenue_account_id: Optional[int] = None) -> PostingRecipe:
    recipe = PostingRecipe(ReferenceType.SALES_INVOICE.value, memo=f"Sales invoice {invoice.number} - {invoice.customer_name}")

    for item in invoice.items:
        product = products[item.product_id]
        revenue_id = revenue_account_id or product.revenue_account_id
        if not revenue_id or not product.cogs_account_id or not product.inventory_account_id:
            raise MissingAccountMapping(f"Product {product.sku} has no complete account mapping")

        cost_total = money(to_decimal(item.quantity) * to_decimal(item.unit_cost))
        tags = dict(product_id=product.id, location_id=item.location_id)

        recipe.debit(invoice.ar_account_id, item.line_total, f"{product.name} x {item.quantity}", **tags)
        recipe.credit(revenue_id, item.line_total, f"Sale of {product.name}", **tags)
        recipe.debit(product.cogs_account_id, cost_total, f"Cost of {product.name}", **tags)
        recipe.credit(product.inventory_account_id, cost_total, f"Stock out {product.name}", **tags)

    return recipe


def build_purchase_recipe(bill: PurchaseBill, products: dict) -> PostingRecipe:
    recipe = PostingRecipe(ReferenceType.PURCHASE_BILL.value, memo=f"Purchase bill {bill.number} - {bill.vendor_name}")

    for item in bill.items:
        product = products[item.product_id]
        if not product.inventory_account_id:
            raise MissingAccountMapping(f"Product {product.sku} has no inventory account")
        recipe.debit(product.inventory_account_id, item.line_total, f"Stock in {product.name}",
                     product_id=product.id, location_id=item.location_id)

    recipe.credit(bill.ap_account_id, bill.total, f"Payable to {bill.vendor_name}")
    return recipe


# =============================================================================
# Input validation (runs before any transaction opens)
# =============================================================================

def _validate_items(items: Sequence, price_field: str):
    if not items:
        raise ValidationError("At least one item is required")
    for i, item in enumerate(items, start=1):
        if to_decimal(item.quantity) <= 0:
            raise ValidationError(f"Item {i}: quantity must be greater than zero", line=i)
        if to_decimal(getattr(item, price_field)) < 0:
            raise ValidationError(f"Item {i}: {price_field} cannot be negative", line=i)


def _validate_number(number: str):
    if not number or not number.strip():
        raise ValidationError("Document number is required")


class PostingService:

    def __init__(self, uow: UnitOfWork, user: ActingUser):
        self.uow = uow
        self.user = user
        self.journal = JournalEntryEngine(uow, user)
        self.inventory = InventoryValuationEngine(uow)

    # -------------------------------------------------------------------------
    # Shared lookups
    # -------------------------------------------------------------------------

    def _require_account(self, account_id: int, label: str):
        account = self.uow.accounts.get(account_id)
        if not account:
            raise ReferentialError(f"{label} account {account_id} does not exist")
        return account

    def _load_catalog(self, items: Sequence):
        products = self.uow.catalog.get_products(item.product_id for item in items)
        locations = self.uow.catalog.get_locations(item.location_id for item in items)
        for i, item in enumerate(items, start=1):
            if item.product_id not in products:
                raise ReferentialError(f"Item {i}: product {item.product_id} does not exist", line=i)
            if item.location_id not in locations:
                raise ReferentialError(f"Item {i}: location {item.location_id} does not exist", line=i)
        return products

    def _check_stock(self, items: Sequence, products: dict):
        """Requested quantity per product and location must be on hand"""
        requested = {}
        for item in items:
            key = (item.product_id, item.location_id)
            requested[key] = requested.get(key, ZERO) + to_decimal(item.quantity)

        for (product_id, location_id), quantity in requested.items():
            balance = self.uow.inventory.get_balance(product_id, location_id)
            on_hand = to_decimal(balance.quantity_on_hand) if balance else ZERO
            if quantity > on_hand:
                raise InsufficientStock(
                    f"Insufficient stock for {products[product_id].sku} at location {location_id}: "
                    f"{on_hand} on hand, {quantity} requested"
                )

    def _replay(self, scope: str, idempotency_key: Optional[str]) -> Optional[int]:
        if not idempotency_key:
            return None
        record = self.uow.idempotency.find(scope, idempotency_key)
        if record:
            logger.info(f"Replayed {scope} {record.resource_id} for idempotency key {idempotency_key}")
            return record.resource_id
        return None

    def _remember(self, scope: str, idempotency_key: Optional[str], resource_id: int):
        if idempotency_key:
            self.uow.idempotency.remember(scope, idempotency_key, resource_id, self.user.id)

    # -------------------------------------------------------------------------
    # Sales invoices
    # -------------------------------------------------------------------------

    def post_sales_invoice(
        self,
        number: str,
        invoice_date: date,
        customer_name: str,
        ar_account_id: int,
        items: Sequence,
        revenue_account_id: Optional[int] = None,
        post: bool = True,
        idempotency_key: Optional[str] = None,
    ) -> SalesInvoice:
        """
        Create a sales invoice and, when post is true, its journal entry and
        OUT stock movements. Items need product_id, location_id, quantity and
        unit_price; unit cost is the product's cost at invoice time.
        Posting needs the requested quantity on hand at each location.
        """
        _validate_number(number)
        _validate_items(items, "unit_price")

        with self.uow:
            replayed = self._replay(ReferenceType.SALES_INVOICE.value, idempotency_key)
            if replayed:
                return self.uow.documents.get_invoice(replayed)

            if self.uow.documents.invoice_number_exists(number):
                raise DuplicateNumber(f"Invoice number {number} already exists")

            self._require_account(ar_account_id, "Receivable")
            if revenue_account_id:
                self._require_account(revenue_account_id, "Revenue")
            products = self._load_catalog(items)
            if post:
                self._check_stock(items, products)

            invoice = SalesInvoice(
                number=number,
                invoice_date=invoice_date,
                customer_name=customer_name,
                ar_account_id=ar_account_id,
                revenue_account_id=revenue_account_id,
                status=DocumentStatus.DRAFT.value,
                created_by=self.user.id,
            )
            total = ZERO
            for item in items:
                quantity = to_decimal(item.quantity)
                line_total = money(quantity * to_decimal(item.unit_price))
                invoice.items.append(SalesInvoiceItem(
                    product_id=item.product_id,
                    location_id=item.location_id,
                    quantity=quantity,
                    unit_price=money(item.unit_price),
                    unit_cost=to_decimal(products[item.product_id].cost),
                    line_total=line_total,
                ))
                total += line_total
            invoice.total = total
            self.uow.documents.add(invoice)

            if post:
                recipe = build_sales_recipe(invoice, products, revenue_account_id)
                entry = self.journal.post(
                    invoice_date, recipe.to_lines(), memo=recipe.memo,
                    reference_type=ReferenceType.SALES_INVOICE.value, reference_id=invoice.id,
                )
                for item in invoice.items:
                    self.inventory.record_movement(
                        product_id=item.product_id,
                        location_id=item.location_id,
                        movement_type=MovementType.OUT.value,
                        quantity=item.quantity,
                        cost_per_unit=item.unit_cost,
                        movement_date=invoice_date,
                        reference_type=ReferenceType.SALES_INVOICE.value,
                        reference_id=invoice.id,
                        journal_entry_id=entry.id,
                        created_by=self.user.id,
                    )
                invoice.status = DocumentStatus.POSTED.value
                invoice.posted_entry_id = entry.id
                logger.info(f"Created journal entry {entry.id} for sales invoice {invoice.number}")
            else:
                logger.info(f"Saved sales invoice {invoice.number} as draft")

            self._remember(ReferenceType.SALES_INVOICE.value, idempotency_key, invoice.id)

        return invoice

    # -------------------------------------------------------------------------
    # Purchase bills
    # -------------------------------------------------------------------------

    def post_purchase_bill(
        self,
        number: str,
        bill_date: date,
        vendor_name: str,
        ap_account_id: int,
        items: Sequence,
        post: bool = True,
        idempotency_key: Optional[str] = None,
    ) -> PurchaseBill:
        """Create a purchase bill and, when post is true, its entry and IN stock movements"""
        _validate_number(number)
        _validate_items(items, "unit_cost")

        with self.uow:
            replayed = self._replay(ReferenceType.PURCHASE_BILL.value, idempotency_key)
            if replayed:
                return self.uow.documents.get_bill(replayed)

            if self.uow.documents.bill_number_exists(number):
                raise DuplicateNumber(f"Bill number {number} already exists")

            self._require_account(ap_account_id, "Payable")
            products = self._load_catalog(items)

            bill = PurchaseBill(
                number=number,
                bill_date=bill_date,
                vendor_name=vendor_name,
                ap_account_id=ap_account_id,
                status=DocumentStatus.DRAFT.value,
                created_by=self.user.id,
            )
            total = ZERO
            for item in items:
                quantity = to_decimal(item.quantity)
                unit_cost = to_decimal(item.unit_cost)
                line_total = money(quantity * unit_cost)
                bill.items.append(PurchaseBillItem(
                    product_id=item.product_id,
                    location_id=item.location_id,
                    quantity=quantity,
                    unit_cost=unit_cost,
                    line_total=line_total,
                ))
                total += line_total
            bill.total = total
            self.uow.documents.add(bill)

            if post:
                recipe = build_purchase_recipe(bill, products)
                entry = self.journal.post(
                    bill_date, recipe.to_lines(), memo=recipe.memo,
                    reference_type=ReferenceType.PURCHASE_BILL.value, reference_id=bill.id,
                )
                for item in bill.items:
                    self.inventory.record_movement(
                        product_id=item.product_id,
                        location_id=item.location_id,
                        movement_type=MovementType.IN.value,
                        quantity=item.quantity,
                        cost_per_unit=item.unit_cost,
                        movement_date=bill_date,
                        reference_type=ReferenceType.PURCHASE_BILL.value,
                        reference_id=bill.id,
                        journal_entry_id=entry.id,
                        created_by=self.user.id,
                    )
                bill.status = DocumentStatus.POSTED.value
                bill.posted_entry_id = entry.id
                logger.info(f"Created journal entry {entry.id} for purchase bill {bill.number}")
            else:
                logger.info(f"Saved purchase bill {bill.number} as draft")

            self._remember(ReferenceType.PURCHASE_BILL.value, idempotency_key, bill.id)

        return bill

    # -------------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------------

    def record_payment(
        self,
        payment_date: date,
        amount,
        payment_type: str,
        bank_account_id: int,
        ar_account_id: Optional[int] = None,
        ap_account_id: Optional[int] = None,
        reference_type: str = ReferenceType.MANUAL.value,
        reference_id: Optional[int] = None,
        post: bool = True,
        idempotency_key: Optional[str] = None,
    ) -> Payment:
        amount = money(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        try:
            payment_type = enum_value(PaymentType, payment_type, "Payment type")
            reference_type = enum_value(ReferenceType, reference_type, "Reference type")
        except ValueError as e:
            raise ValidationError(str(e))
        if payment_type == PaymentType.IN.value and not ar_account_id:
            raise ValidationError("Incoming payments need ar_account_id")
        if payment_type == PaymentType.OUT.value and not ap_account_id:
            raise ValidationError("Outgoing payments need ap_account_id")

        with self.uow:
            replayed = self._replay(ReferenceType.PAYMENT.value, idempotency_key)
            if replayed:
                return self.uow.documents.get_payment(replayed)

            self._require_account(bank_account_id, "Bank")
            invoice = None
            if reference_type == ReferenceType.SALES_INVOICE.value and reference_id:
                invoice = self.uow.documents.get_invoice(reference_id)
                if not invoice:
                    raise ReferentialError(f"Sales invoice {reference_id} does not exist")

            payment = self.uow.documents.add(Payment(
                payment_date=payment_date,
                amount=amount,
                payment_type=payment_type,
                bank_account_id=bank_account_id,
                ar_account_id=ar_account_id,
                ap_account_id=ap_account_id,
                reference_type=reference_type,
                reference_id=reference_id,
                status=DocumentStatus.DRAFT.value,
                reconciled=False,
                created_by=self.user.id,
            ))

            if post:
                if payment_type == PaymentType.IN.value:
                    lines = [
                        LineInput(account_id=bank_account_id, debit=amount, description="Payment received"),
                        LineInput(account_id=ar_account_id, credit=amount, description="Payment received"),
                    ]
                else:
                    lines = [
                        LineInput(account_id=ap_account_id, debit=amount, description="Payment made"),
                        LineInput(account_id=bank_account_id, credit=amount, description="Payment made"),
                    ]
                entry = self.journal.post(
                    payment_date, lines, memo=f"Payment {payment_type} {amount}",
                    reference_type=ReferenceType.PAYMENT.value, reference_id=payment.id,
                )
                payment.status = DocumentStatus.POSTED.value
                payment.journal_entry_id = entry.id
                self.uow.session.flush()
                logger.info(f"Created journal entry {entry.id} for payment {payment.id}")

                if invoice and payment_type == PaymentType.IN.value:
                    self._refresh_invoice_status(invoice)

            self._remember(ReferenceType.PAYMENT.value, idempotency_key, payment.id)

        return payment

    def _refresh_invoice_status(self, invoice: SalesInvoice):
        # Drafts stay drafts until posted
        if invoice.status == DocumentStatus.DRAFT.value:
            return
        paid = money(self.uow.documents.total_received_for_invoice(invoice.id))
        if paid >= money(invoice.total):
            invoice.status = DocumentStatus.PAID.value
        elif paid > 0:
            invoice.status = DocumentStatus.PARTIALLY_PAID.value
        else:
            invoice.status = DocumentStatus.POSTED.value
        logger.info(f"Sales invoice {invoice.number} is now {invoice.status} ({paid} received)")

    # -------------------------------------------------------------------------
    # Bank reconciliation
    # -------------------------------------------------------------------------

    def reconcile_bank(
        self,
        bank_account_id: int,
        statement_date: date,
        ending_balance,
        payment_ids: Sequence[int],
        notes: Optional[str] = None,
    ) -> BankReconciliation:
        """
        Match payments to a bank statement. No journal entry is written.
        Any unknown, foreign, draft or already reconciled payment aborts the call.
        """
        if not payment_ids:
            raise ValidationError("At least one payment id is required")
        if len(set(payment_ids)) != len(payment_ids):
            raise ValidationError("Payment ids must be unique")

        with self.uow:
            self._require_account(bank_account_id, "Bank")
            payments = self.uow.documents.get_payments(payment_ids)

            for payment_id in payment_ids:
                payment = payments.get(payment_id)
                if not payment:
                    raise ReferentialError(f"Payment {payment_id} does not exist")
                if payment.bank_account_id != bank_account_id:
                    raise BusinessRuleViolation(f"Payment {payment_id} belongs to another bank account")
                if payment.status != DocumentStatus.POSTED.value:
                    raise BusinessRuleViolation(f"Payment {payment_id} is not posted")
                if payment.reconciled:
                    raise BusinessRuleViolation(f"Payment {payment_id} is already reconciled")

            reconciliation = self.uow.reconciliations.add(BankReconciliation(
                bank_account_id=bank_account_id,
                statement_date=statement_date,
                ending_balance=money(ending_balance),
                notes=notes,
                created_by=self.user.id,
            ))
            for payment_id in payment_ids:
                self.uow.reconciliations.add_line(ReconciliationLine(
                    reconciliation_id=reconciliation.id,
                    payment_id=payment_id,
                ))
                payments[payment_id].reconciled = True

            logger.info(
                f"Reconciled {len(payment_ids)} payments on bank account {bank_account_id} "
                f"as of {statement_date}"
            )

        return reconciliation

    def unreconciled(self, bank_account_id: Optional[int] = None) -> List[Payment]:
        return self.uow.documents.unreconciled_payments(bank_account_id)
