"""Invoice ledger aggregate

Shared read-modify-write sequence used by direct payments and claim
approval. Every method expects to run inside the caller's transaction.
"""

import logging
from decimal import Decimal
from bursary.app.errors import InvoiceNotFoundError, OverpaymentError
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.invoice import Invoice, derive_invoice_status
from bursary.domain.money import to_money

logger = logging.getLogger(__name__)


class InvoiceLedger:
    """
    Keeps Invoice.amount_paid / Invoice.status equal to the sum of the
    invoice's APPROVED payments.

    Rules:
    1. The invoice row is locked (SELECT FOR UPDATE) before any aggregate read
    2. The aggregate is recomputed from payment rows, never patched incrementally
    3. amount_paid may never exceed total_amount (over-payment is rejected)
    """

    def __init__(self, invoice_repo: InvoiceRepository, payment_repo: PaymentRepository):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def lock_invoice(self, invoice_id: str) -> Invoice:
        invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
        if not invoice:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    async def ensure_capacity(self, invoice: Invoice, amount: Decimal) -> Decimal:
        """
        Reject a payment that would over-pay the invoice

        Returns:
            The current effective total read from the payment rows
        """
        effective_total = await self.payment_repo.get_effective_total(invoice.id)
        outstanding = to_money(invoice.total_amount) - effective_total
        if to_money(amount) > outstanding:
            raise OverpaymentError(
                f"Payment of {to_money(amount)} exceeds the outstanding balance "
                f"of {outstanding} on invoice {invoice.invoice_number}",
                details={
                    "invoice_id": invoice.id,
                    "outstanding": str(outstanding),
                    "amount": str(to_money(amount)),
                },
            )
        return effective_total

    async def recompute(self, invoice: Invoice) -> Invoice:
        """
        Recompute amount_paid and status from the effective payments

        Called after the payment row change has been flushed, so the new
        payment is part of the sum.
        """
        amount_paid = await self.payment_repo.get_effective_total(invoice.id)
        total_amount = to_money(invoice.total_amount)

        if amount_paid > total_amount:
            raise OverpaymentError(
                f"Effective payments of {amount_paid} exceed the total of "
                f"{total_amount} on invoice {invoice.invoice_number}",
                details={"invoice_id": invoice.id},
            )

        previous_status = invoice.status
        invoice.amount_paid = amount_paid
        invoice.status = derive_invoice_status(amount_paid, total_amount)
        updated = await self.invoice_repo.update(invoice)

        logger.info(
            f"Invoice {invoice.invoice_number} ledger updated: "
            f"amount_paid={amount_paid}, total={total_amount}, "
            f"status {previous_status.value} -> {invoice.status.value}"
        )
        return updated
