"""
Enumerations shared by models, schemas and services.
Stored as plain strings in the database.
"""

from enum import Enum


class AccountCategory(str, Enum):
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class ReferenceType(str, Enum):
    MANUAL = "MANUAL"
    SALES_INVOICE = "SALES_INVOICE"
    PURCHASE_BILL = "PURCHASE_BILL"
    PAYMENT = "PAYMENT"
    ADJUSTMENT = "ADJUSTMENT"


class DocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    POSTED = "POSTED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class PaymentType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class Side(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class Role(str, Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    INVENTORY = "INVENTORY"
    STAFF = "STAFF"


def enum_value(enum_cls, value, label: str) -> str:
    """Plain string value of an enum member; ValueError names the allowed choices"""
    try:
        return enum_cls(value).value
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"{label} must be one of {choices}, got {value!r}")
