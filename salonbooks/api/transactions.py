"""
Transactions API Routes
Sales invoices, purchase bills and payments. Each document is posted to the
journal on creation unless `post` is false, in which case it stays a draft.
"""

from fastapi import APIRouter, Depends, Header, Request, status
from typing import Optional
import logging

from salonbooks.api.deps import get_current_user, get_uow
from salonbooks.exceptions import NotFound
from salonbooks.schemas import (
    SalesInvoice as SalesInvoiceSchema, SalesInvoiceCreate,
    PurchaseBill as PurchaseBillSchema, PurchaseBillCreate,
    Payment as PaymentSchema, PaymentCreate
)
from salonbooks.services.posting import PostingService
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.rate_limiter import limiter, RateLimits
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Sales Invoices
# ============================================================================

@router.post("/transactions/sales-invoices", response_model=SalesInvoiceSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.POSTING)
def create_sales_invoice(
    request: Request,
    invoice: SalesInvoiceCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return PostingService(uow, current_user).post_sales_invoice(
        number=invoice.number,
        invoice_date=invoice.invoice_date,
        customer_name=invoice.customer_name,
        ar_account_id=invoice.ar_account_id,
        items=invoice.items,
        revenue_account_id=invoice.revenue_account_id,
        post=invoice.post,
        idempotency_key=idempotency_key,
    )


@router.get("/transactions/sales-invoices/{invoice_id}", response_model=SalesInvoiceSchema)
def get_sales_invoice(
    invoice_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    invoice = uow.documents.get_invoice(invoice_id)
    if not invoice:
        raise NotFound(f"Sales invoice {invoice_id} not found")
    return invoice


# ============================================================================
# Purchase Bills
# ============================================================================

@router.post("/transactions/purchase-bills", response_model=PurchaseBillSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.POSTING)
def create_purchase_bill(
    request: Request,
    bill: PurchaseBillCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return PostingService(uow, current_user).post_purchase_bill(
        number=bill.number,
        bill_date=bill.bill_date,
        vendor_name=bill.vendor_name,
        ap_account_id=bill.ap_account_id,
        items=bill.items,
        post=bill.post,
        idempotency_key=idempotency_key,
    )


@router.get("/transactions/purchase-bills/{bill_id}", response_model=PurchaseBillSchema)
def get_purchase_bill(
    bill_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    bill = uow.documents.get_bill(bill_id)
    if not bill:
        raise NotFound(f"Purchase bill {bill_id} not found")
    return bill


# ============================================================================
# Payments
# ============================================================================

@router.post("/transactions/payments", response_model=PaymentSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.POSTING)
def create_payment(
    request: Request,
    payment: PaymentCreate,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return PostingService(uow, current_user).record_payment(
        payment_date=payment.payment_date,
        amount=payment.amount,
        payment_type=payment.payment_type,
        bank_account_id=payment.bank_account_id,
        ar_account_id=payment.ar_account_id,
        ap_account_id=payment.ap_account_id,
        reference_type=payment.reference_type,
        reference_id=payment.reference_id,
        post=payment.post,
        idempotency_key=idempotency_key,
    )


@router.get("/transactions/payments/{payment_id}", response_model=PaymentSchema)
def get_payment(
    payment_id: int,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    payment = uow.documents.get_payment(payment_id)
    if not payment:
        raise NotFound(f"Payment {payment_id} not found")
    return payment
