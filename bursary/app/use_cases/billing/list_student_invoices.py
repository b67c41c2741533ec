"""
List Student Invoices Use Case

Payer-facing listing: a student's invoices with items and payment history.
"""
from libs.result import Result, Return, Error
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.invoice_item_repository import InvoiceItemRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from .dtos import StudentInvoicesResponseDTO
from .mappers import to_invoice_detail


class ListStudentInvoices:
    """
    Use case: List a student's invoices

    Invoices are ordered newest first (issue_date DESC). A student with no
    invoices gets an empty list rather than an error.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.payment_repo = payment_repo

    async def execute(self, student_id: str) -> Result[StudentInvoicesResponseDTO]:
        try:
            invoices = await self.invoice_repo.get_by_student_id(student_id)

            details = []
            for invoice in invoices:
                items = await self.item_repo.get_by_invoice_id(invoice.id)
                payments = await self.payment_repo.get_by_invoice_id(invoice.id)
                details.append(to_invoice_detail(invoice, items, payments))

            return Return.ok(StudentInvoicesResponseDTO(student_id=student_id, invoices=details))

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_INVOICES_FAILED",
                    message="Failed to list student invoices",
                    reason=str(e),
                )
            )
