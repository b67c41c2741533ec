"""Ledger error taxonomy

Raised inside the application layer and converted to ``libs.result.Error`` at
the use-case boundary. ``code`` is stable and safe to expose; ``reason`` holds
internal detail for logs only.
"""

from typing import Any, Dict, Optional
from libs.result import Error


class LedgerError(Exception):
    """Base class for all expected ledger failures"""

    code: str = "LEDGER_ERROR"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.reason = reason
        self.details = details

    def to_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            reason=self.reason,
            details=self.details,
        )


class ValidationError(LedgerError):
    """Malformed or missing input (non-positive amount, empty item list, ...)"""
    code = "VALIDATION_ERROR"


class OverpaymentError(ValidationError):
    """Payment would push amount_paid above total_amount"""
    code = "OVERPAYMENT"


class InvoiceAlreadyPaidError(ValidationError):
    """Claim against an invoice with no outstanding balance"""
    code = "INVOICE_ALREADY_PAID"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class InvoiceNotFoundError(NotFoundError):
    code = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


class PaymentNotFoundError(NotFoundError):
    code = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id


class StudentNotFoundError(NotFoundError):
    code = "STUDENT_NOT_FOUND"

    def __init__(self, student_id: str):
        super().__init__(f"Active student {student_id} not found")
        self.student_id = student_id


class AlreadyProcessedError(LedgerError):
    """Claim verification attempted on a payment that is no longer PENDING"""
    code = "ALREADY_PROCESSED"

    def __init__(self, payment_id: str, status: str):
        super().__init__(f"Payment {payment_id} has already been processed (status={status})")
        self.payment_id = payment_id
        self.status = status


class NoRecipientsError(LedgerError):
    """Bulk invoice selector matched no active students"""
    code = "NO_RECIPIENTS"


class ConstraintViolationError(LedgerError):
    """Store-level constraint rejected the write (unique key, foreign key)"""
    code = "CONSTRAINT_VIOLATION"


class DuplicateInvoiceNumberError(ConstraintViolationError):
    code = "DUPLICATE_INVOICE_NUMBER"


class TransientStoreError(LedgerError):
    """Deadlock, lock timeout or dropped connection; safe to retry the transaction"""
    code = "TRANSIENT_STORE_ERROR"
    retryable = True
