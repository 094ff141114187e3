from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Date, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from salonbooks.constants import DocumentStatus, ReferenceType
from salonbooks.database import Base


# =============================================================================
# Chart of Accounts
# =============================================================================

class Account(Base):
    """
    Chart of Accounts entry.
    Code is unique across every account, active or not.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)

    # ASSET, LIABILITY, EQUITY, INCOME, EXPENSE
    category = Column(String(20), nullable=False, index=True)

    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    parent = relationship("Account", remote_side=[id], backref="children")


# =============================================================================
# Catalog (only the fields the ledger consumes)
# =============================================================================

class StockLocation(Base):
    """Salon branch or store room holding stock"""
    __tablename__ = "stock_locations"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(30), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now())


class Product(Base):
    """
    Retail product or salon consumable.
    Carries the account mapping used when the product is bought or sold.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    unit_of_measure = Column(String(20), default="unit")

    # Pricing
    price = Column(Numeric(14, 2), nullable=False, default=0)  # List selling price
    cost = Column(Numeric(14, 4), nullable=False, default=0)  # Static list cost, snapshotted on sale
    reorder_point = Column(Integer, default=0)

    # Account mapping
    inventory_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    cogs_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    revenue_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    inventory_account = relationship("Account", foreign_keys=[inventory_account_id])
    cogs_account = relationship("Account", foreign_keys=[cogs_account_id])
    revenue_account = relationship("Account", foreign_keys=[revenue_account_id])


# =============================================================================
# Journal
# =============================================================================

class JournalEntry(Base):
    """
    Balanced group of journal lines for one business event.
    Append-only: lines are never edited or deleted once written.
    """
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    entry_date = Column(Date, nullable=False, index=True)
    memo = Column(Text, nullable=True)
    posted = Column(Boolean, default=True, nullable=False)

    # MANUAL, SALES_INVOICE, PURCHASE_BILL, PAYMENT, ADJUSTMENT
    reference_type = Column(String(20), nullable=False, default=ReferenceType.MANUAL.value)
    reference_id = Column(Integer, nullable=True)

    total_debit = Column(Numeric(14, 2), default=0)
    total_credit = Column(Numeric(14, 2), default=0)

    created_by = Column(String(64), nullable=True)  # Acting user id from the auth token
    created_at = Column(DateTime, default=func.now())

    # Relationships
    lines = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_number",
    )

    __table_args__ = (
        Index("ix_journal_entries_reference", "reference_type", "reference_id"),
    )


class JournalLine(Base):
    """Single debit or credit against one account"""
    __tablename__ = "journal_lines"

    id = Column(Integer, primary_key=True, index=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    line_number = Column(Integer, nullable=False, default=1)

    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    description = Column(String(500), nullable=True)

    debit = Column(Numeric(14, 2), nullable=False, default=0)
    credit = Column(Numeric(14, 2), nullable=False, default=0)

    # Dimensions
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    location_id = Column(Integer, ForeignKey("stock_locations.id"), nullable=True, index=True)

    # Relationships
    entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account")
    product = relationship("Product")
    location = relationship("StockLocation")


# =============================================================================
# Business documents
# =============================================================================

class SalesInvoice(Base):
    __tablename__ = "sales_invoices"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(50), nullable=False, unique=True, index=True)
    invoice_date = Column(Date, nullable=False)
    customer_name = Column(String(200), nullable=False)

    ar_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    revenue_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)  # Overrides product mapping

    # DRAFT, POSTED, PARTIALLY_PAID, PAID
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value)
    total = Column(Numeric(14, 2), nullable=False, default=0)

    posted_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    items = relationship("SalesInvoiceItem", back_populates="invoice", cascade="all, delete-orphan")
    posted_entry = relationship("JournalEntry")


class SalesInvoiceItem(Base):
    __tablename__ = "sales_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    location_id = Column(Integer, ForeignKey("stock_locations.id"), nullable=False)

    quantity = Column(Numeric(14, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    unit_cost = Column(Numeric(14, 4), nullable=False, default=0)  # Product cost snapshot at invoice time
    line_total = Column(Numeric(14, 2), nullable=False)

    invoice = relationship("SalesInvoice", back_populates="items")
    product = relationship("Product")


class PurchaseBill(Base):
    __tablename__ = "purchase_bills"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(50), nullable=False, unique=True, index=True)
    bill_date = Column(Date, nullable=False)
    vendor_name = Column(String(200), nullable=False)

    ap_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)

    # DRAFT, POSTED
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value)
    total = Column(Numeric(14, 2), nullable=False, default=0)

    posted_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    items = relationship("PurchaseBillItem", back_populates="bill", cascade="all, delete-orphan")
    posted_entry = relationship("JournalEntry")


class PurchaseBillItem(Base):
    __tablename__ = "purchase_bill_items"

    id = Column(Integer, primary_key=True, index=True)
    bill_id = Column(Integer, ForeignKey("purchase_bills.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    location_id = Column(Integer, ForeignKey("stock_locations.id"), nullable=False)

    quantity = Column(Numeric(14, 3), nullable=False)
    unit_cost = Column(Numeric(14, 4), nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)

    bill = relationship("PurchaseBill", back_populates="items")
    product = relationship("Product")


class Payment(Base):
    """
    Money received (IN) or paid out (OUT) through a bank account.
    """
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    payment_type = Column(String(3), nullable=False)  # IN or OUT

    bank_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    ar_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    ap_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    reference_type = Column(String(20), nullable=False, default=ReferenceType.MANUAL.value)
    reference_id = Column(Integer, nullable=True)

    # DRAFT, POSTED
    status = Column(String(20), nullable=False, default=DocumentStatus.DRAFT.value)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    reconciled = Column(Boolean, default=False, nullable=False)

    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    journal_entry = relationship("JournalEntry")


# =============================================================================
# Inventory
# =============================================================================

class StockMovement(Base):
    """
    Every stock movement is recorded here for full traceability.
    Movements created by a posting share the document's reference and entry.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("stock_locations.id"), nullable=False, index=True)

    # IN, OUT, ADJUSTMENT (adjustment quantity may be negative)
    movement_type = Column(String(20), nullable=False)
    quantity = Column(Numeric(14, 3), nullable=False)
    cost_per_unit = Column(Numeric(14, 4), nullable=False, default=0)

    reference_type = Column(String(20), nullable=False, default=ReferenceType.MANUAL.value)
    reference_id = Column(Integer, nullable=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)

    movement_date = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    product = relationship("Product")
    location = relationship("StockLocation")
    journal_entry = relationship("JournalEntry")


class InventoryBalance(Base):
    """
    Running quantity and value per product per location.
    Denormalized for quick valuation queries; updated with every movement insert.
    """
    __tablename__ = "inventory_balances"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    location_id = Column(Integer, ForeignKey("stock_locations.id"), nullable=False)

    quantity_on_hand = Column(Numeric(14, 3), nullable=False, default=0)
    inventory_value = Column(Numeric(16, 4), nullable=False, default=0)

    last_movement_id = Column(Integer, ForeignKey("stock_movements.id"), nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint('product_id', 'location_id', name='uq_inventory_balance_product_location'),
    )


# =============================================================================
# Banking
# =============================================================================

class BankReconciliation(Base):
    """Bank statement snapshot matched against recorded payments"""
    __tablename__ = "bank_reconciliations"

    id = Column(Integer, primary_key=True, index=True)
    bank_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    statement_date = Column(Date, nullable=False)
    ending_balance = Column(Numeric(14, 2), nullable=False)
    notes = Column(Text, nullable=True)

    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    lines = relationship("ReconciliationLine", back_populates="reconciliation", cascade="all, delete-orphan")


class ReconciliationLine(Base):
    __tablename__ = "reconciliation_lines"

    id = Column(Integer, primary_key=True, index=True)
    reconciliation_id = Column(Integer, ForeignKey("bank_reconciliations.id", ondelete="CASCADE"), nullable=False)
    payment_id = Column(Integer, ForeignKey("payments.id"), nullable=False, unique=True)

    reconciliation = relationship("BankReconciliation", back_populates="lines")
    payment = relationship("Payment")


# =============================================================================
# Idempotency
# =============================================================================

class IdempotencyRecord(Base):
    """
    Maps a caller-supplied key to the document it created, per document type.
    """
    __tablename__ = "idempotency_records"

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(30), nullable=False)  # Document type
    key = Column(String(200), nullable=False)
    resource_id = Column(Integer, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint('scope', 'key', name='uq_idempotency_scope_key'),
    )
