"""Get Invoice Use Case

Retrieves one invoice with its items and payments.
"""

from libs.result import Result, Return, Error
from bursary.app.errors import InvoiceNotFoundError
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.invoice_item_repository import InvoiceItemRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from .dtos import InvoiceDetailDTO
from .mappers import to_invoice_detail


class GetInvoice:
    """
    Get Invoice Use Case

    Read-only. Payments of every status are listed; only APPROVED ones are
    reflected in amount_paid.
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

    async def execute(self, invoice_id: str) -> Result[InvoiceDetailDTO]:
        """
        Args:
            invoice_id: Invoice identifier

        Returns:
            Result[InvoiceDetailDTO]: Invoice detail or INVOICE_NOT_FOUND
        """
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                return Return.err(InvoiceNotFoundError(invoice_id).to_error())

            items = await self.item_repo.get_by_invoice_id(invoice.id)
            payments = await self.payment_repo.get_by_invoice_id(invoice.id)

            return Return.ok(to_invoice_detail(invoice, items, payments))

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_INVOICE_FAILED",
                    message="Failed to retrieve invoice",
                    reason=str(e),
                )
            )
