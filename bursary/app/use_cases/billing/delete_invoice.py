"""DeleteInvoice Use Case

Administrative removal of an invoice that was issued in error.
"""

import logging
from libs.result import Result, Return, Error
from bursary.app.errors import ConstraintViolationError, LedgerError
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from .invoice_ledger import InvoiceLedger

logger = logging.getLogger(__name__)


class DeleteInvoice:
    """
    Use Case: Delete an invoice

    Business Rules:
    1. The invoice is locked so no payment can land while it is removed
    2. An invoice with any payment row (PENDING, APPROVED or REJECTED) is
       kept: the payment history is part of the ledger (INVOICE_HAS_PAYMENTS)
    3. Items are deleted with the invoice in the same transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.ledger = InvoiceLedger(invoice_repo, payment_repo)

    async def execute(self, invoice_id: str) -> Result[None]:
        try:
            async def work() -> str:
                invoice = await self.ledger.lock_invoice(invoice_id)

                payment_count = await self.payment_repo.count_by_invoice_id(invoice.id)
                if payment_count:
                    raise ConstraintViolationError(
                        f"Invoice {invoice.invoice_number} has {payment_count} payment(s) "
                        f"and cannot be deleted",
                        code="INVOICE_HAS_PAYMENTS",
                    )

                invoice_number = invoice.invoice_number
                await self.invoice_repo.delete(invoice)
                return invoice_number

            invoice_number = await self.uow.run_transaction(work)
            logger.info(f"Deleted invoice {invoice_number} ({invoice_id})")
            return Return.ok(None)

        except LedgerError as e:
            logger.warning(f"Invoice deletion rejected for {invoice_id}: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice deletion failed for {invoice_id}: {e}")
            return Return.err(
                Error(
                    code="DELETE_INVOICE_FAILED",
                    message="Failed to delete invoice",
                    reason=str(e),
                )
            )
