from .base import BaseModel, generate_uuid, utcnow
from .student import Student
from .invoice import Invoice, InvoiceStatus, derive_invoice_status, generate_invoice_number
from .invoice_item import InvoiceItem
from .payment import Payment, PaymentStatus, ClaimDecision

__all__ = [
    "BaseModel",
    "generate_uuid",
    "utcnow",
    "Student",
    "Invoice",
    "InvoiceStatus",
    "derive_invoice_status",
    "generate_invoice_number",
    "InvoiceItem",
    "Payment",
    "PaymentStatus",
    "ClaimDecision",
]
