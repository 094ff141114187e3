from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime, date
from typing import Optional, List

from salonbooks.constants import MovementType, PaymentType, ReferenceType


def _date_field(name: str):
    # Clients may send either the explicit field name or plain "date"
    return Field(..., validation_alias=AliasChoices(name, "date"))


# Account Schemas
class AccountBase(BaseModel):
    code: str
    name: str
    category: str  # ASSET, LIABILITY, EQUITY, INCOME, EXPENSE
    parent_id: Optional[int] = None
    is_active: bool = True


class AccountCreate(AccountBase):
    pass


class AccountUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


class Account(AccountBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AccountList(BaseModel):
    items: List[Account]
    total: int
    page: int
    page_size: int


# Location Schemas
class LocationBase(BaseModel):
    code: str
    name: str
    is_active: bool = True


class LocationCreate(LocationBase):
    pass


class LocationUpdate(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    is_active: Optional[bool] = None


class Location(LocationBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LocationList(BaseModel):
    items: List[Location]
    total: int
    page: int
    page_size: int


# Product Schemas
class ProductBase(BaseModel):
    sku: str
    name: str
    description: Optional[str] = None
    unit_of_measure: str = "unit"
    price: float = 0
    cost: float = 0
    reorder_point: int = 0
    inventory_account_id: int
    cogs_account_id: int
    revenue_account_id: int
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    unit_of_measure: Optional[str] = None
    price: Optional[float] = None
    cost: Optional[float] = None
    reorder_point: Optional[int] = None
    inventory_account_id: Optional[int] = None
    cogs_account_id: Optional[int] = None
    revenue_account_id: Optional[int] = None
    is_active: Optional[bool] = None


class Product(ProductBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductList(BaseModel):
    items: List[Product]
    total: int
    page: int
    page_size: int


# Journal Entry Schemas
class JournalLineBase(BaseModel):
    account_id: int
    debit: float = 0
    credit: float = 0
    description: Optional[str] = None
    product_id: Optional[int] = None
    location_id: Optional[int] = None


class JournalLineCreate(JournalLineBase):
    pass


class JournalLine(JournalLineBase):
    id: int
    line_number: int

    class Config:
        from_attributes = True


class JournalEntryCreate(BaseModel):
    entry_date: date = _date_field("entry_date")
    memo: Optional[str] = None
    lines: List[JournalLineCreate] = Field(..., min_length=2)


class JournalEntry(BaseModel):
    id: int
    entry_date: date
    memo: Optional[str] = None
    posted: bool = True
    reference_type: str
    reference_id: Optional[int] = None
    total_debit: float = 0
    total_credit: float = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    lines: List[JournalLine] = []

    class Config:
        from_attributes = True


# Sales Invoice Schemas
class SalesInvoiceItemCreate(BaseModel):
    product_id: int
    location_id: int
    quantity: float
    unit_price: float


class SalesInvoiceItem(SalesInvoiceItemCreate):
    id: int
    unit_cost: float
    line_total: float

    class Config:
        from_attributes = True


class SalesInvoiceCreate(BaseModel):
    number: str
    invoice_date: date = _date_field("invoice_date")
    customer_name: str
    ar_account_id: int
    revenue_account_id: Optional[int] = None  # Overrides each product's revenue account
    items: List[SalesInvoiceItemCreate] = Field(..., min_length=1)
    post: bool = True


class SalesInvoice(BaseModel):
    id: int
    number: str
    invoice_date: date
    customer_name: str
    ar_account_id: int
    revenue_account_id: Optional[int] = None
    status: str
    total: float
    posted_entry_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[SalesInvoiceItem] = []

    class Config:
        from_attributes = True


# Purchase Bill Schemas
class PurchaseBillItemCreate(BaseModel):
    product_id: int
    location_id: int
    quantity: float
    unit_cost: float


class PurchaseBillItem(PurchaseBillItemCreate):
    id: int
    line_total: float

    class Config:
        from_attributes = True


class PurchaseBillCreate(BaseModel):
    number: str
    bill_date: date = _date_field("bill_date")
    vendor_name: str
    ap_account_id: int
    items: List[PurchaseBillItemCreate] = Field(..., min_length=1)
    post: bool = True


class PurchaseBill(BaseModel):
    id: int
    number: str
    bill_date: date
    vendor_name: str
    ap_account_id: int
    status: str
    total: float
    posted_entry_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[PurchaseBillItem] = []

    class Config:
        from_attributes = True


# Payment Schemas
class PaymentCreate(BaseModel):
    payment_date: date = _date_field("payment_date")
    amount: float
    payment_type: PaymentType
    bank_account_id: int
    ar_account_id: Optional[int] = None  # Required for IN
    ap_account_id: Optional[int] = None  # Required for OUT
    reference_type: ReferenceType = ReferenceType.MANUAL
    reference_id: Optional[int] = None
    post: bool = True


class Payment(BaseModel):
    id: int
    payment_date: date
    amount: float
    payment_type: str
    bank_account_id: int
    ar_account_id: Optional[int] = None
    ap_account_id: Optional[int] = None
    reference_type: str
    reference_id: Optional[int] = None
    status: str
    journal_entry_id: Optional[int] = None
    reconciled: bool = False
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Bank Reconciliation Schemas
class ReconcileRequest(BaseModel):
    bank_account_id: int
    statement_date: date
    ending_balance: float
    payment_ids: List[int] = Field(..., min_length=1)
    notes: Optional[str] = None


class ReconciliationLine(BaseModel):
    id: int
    payment_id: int

    class Config:
        from_attributes = True


class BankReconciliation(BaseModel):
    id: int
    bank_account_id: int
    statement_date: date
    ending_balance: float
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    lines: List[ReconciliationLine] = []

    class Config:
        from_attributes = True


# Report Schemas
class TrialBalanceRow(BaseModel):
    account_id: int
    code: str
    name: str
    category: str
    debit: float
    credit: float
    balance: float


class TrialBalanceTotals(BaseModel):
    debit: float
    credit: float


class TrialBalanceReport(BaseModel):
    rows: List[TrialBalanceRow]
    totals: TrialBalanceTotals


class ReportAccountRow(BaseModel):
    account_id: int
    code: str
    name: str
    category: str
    balance: float


class ProfitLossReport(BaseModel):
    start: date
    end: date
    income: float
    cogs: float
    expense: float
    gross_profit: float
    net_profit: float
    income_accounts: List[ReportAccountRow] = []
    cogs_accounts: List[ReportAccountRow] = []
    expense_accounts: List[ReportAccountRow] = []


class BalanceSheetReport(BaseModel):
    as_of: date
    assets: float
    liabilities: float
    equity: float
    retained_earnings: float
    balanced: bool
    asset_accounts: List[ReportAccountRow] = []
    liability_accounts: List[ReportAccountRow] = []
    equity_accounts: List[ReportAccountRow] = []


class LocationRevenueRow(BaseModel):
    location_id: int
    code: str
    name: str
    revenue: float


class RevenueByLocationReport(BaseModel):
    start: date
    end: date
    rows: List[LocationRevenueRow]


# Inventory Schemas
class InventoryValuationRow(BaseModel):
    product_id: int
    sku: str
    name: str
    quantity_on_hand: float
    avg_cost: float
    inventory_value: float


class InventoryValuation(BaseModel):
    as_of: Optional[date] = None
    rows: List[InventoryValuationRow]
    total_value: float


class StockMovementCreate(BaseModel):
    product_id: int
    location_id: int
    movement_type: MovementType
    quantity: float  # Adjustments may be negative
    cost_per_unit: float = 0
    movement_date: date = _date_field("movement_date")
    reference_type: ReferenceType = ReferenceType.MANUAL
    reference_id: Optional[int] = None
    notes: Optional[str] = None


class StockMovement(BaseModel):
    id: int
    product_id: int
    location_id: int
    movement_type: str
    quantity: float
    cost_per_unit: float
    reference_type: str
    reference_id: Optional[int] = None
    journal_entry_id: Optional[int] = None
    movement_date: date
    notes: Optional[str] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class RebuildResult(BaseModel):
    balances: int


class HealthStatus(BaseModel):
    status: str
    database: str
