from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_item_repository import SqlAlchemyInvoiceItemRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .student_repository import SqlAlchemyStudentRepository

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceItemRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyStudentRepository",
]
