from typing import Optional


class LedgerError(Exception):
    """Base class for every error the ledger reports back to a caller."""
    status_code = 400

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def to_dict(self) -> dict:
        detail = {"error": type(self).__name__, "detail": self.message}
        if self.line is not None:
            detail["line"] = self.line
        return detail


# Malformed input, caught before any transaction opens
class ValidationError(LedgerError):
    pass


# Accounting rules
class BusinessRuleViolation(LedgerError):
    pass


class UnbalancedEntry(BusinessRuleViolation):
    """Raised when a journal entry fails the double-entry balance check."""
    pass


class InvalidLine(BusinessRuleViolation):
    pass


class InvalidAmount(BusinessRuleViolation):
    pass


class MissingAccountMapping(BusinessRuleViolation):
    pass


class InsufficientStock(BusinessRuleViolation):
    pass


class CategoryLocked(BusinessRuleViolation):
    pass


# Unknown ids referenced while a transaction is open
class ReferentialError(LedgerError):
    pass


class NotFound(ReferentialError):
    status_code = 404


# Storage constraints
class StorageError(LedgerError):
    pass


class DuplicateCode(StorageError):
    pass


class DuplicateNumber(StorageError):
    pass


class ReferencedByLedger(StorageError):
    pass


class AccountInUse(StorageError):
    pass
