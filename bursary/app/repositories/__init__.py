from .invoice_repository import InvoiceRepository, StudentOutstanding
from .invoice_item_repository import InvoiceItemRepository
from .payment_repository import PaymentRepository
from .student_repository import StudentRepository

__all__ = [
    "InvoiceRepository",
    "StudentOutstanding",
    "InvoiceItemRepository",
    "PaymentRepository",
    "StudentRepository",
]
