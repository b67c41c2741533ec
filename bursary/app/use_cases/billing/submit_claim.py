"""SubmitPaymentClaim Use Case

Records a payer's claim that they paid an invoice. The claim stays PENDING
and does not touch the invoice's paid total until an administrator
approves it.
"""

import logging
from decimal import Decimal
from typing import Tuple
from libs.result import Result, Return, Error
from bursary.app.errors import InvoiceAlreadyPaidError, LedgerError, OverpaymentError
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.invoice import Invoice
from bursary.domain.money import ZERO, to_money
from bursary.domain.payment import Payment, PaymentStatus
from .dtos import PaymentResponseDTO, SubmitClaimCommandDTO
from .invoice_ledger import InvoiceLedger
from .mappers import to_invoice_summary, to_payment_dto
from .record_payment import validate_amount

logger = logging.getLogger(__name__)


class SubmitPaymentClaim:
    """
    Use Case: Submit a payment claim for verification

    Business Rules:
    1. amount > 0
    2. The invoice must have an outstanding balance (INVOICE_ALREADY_PAID)
    3. The claim may not exceed the outstanding balance (OVERPAYMENT);
       approval re-checks this against the balance at that time
    4. The claim is stored PENDING; amount_paid and status are unchanged

    Flow:
    1. Validate amount
    2. Lock invoice
    3. Check outstanding balance
    4. Insert PENDING payment
    5. Commit and return
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

    async def execute(self, command: SubmitClaimCommandDTO) -> Result[PaymentResponseDTO]:
        """
        Execute claim submission

        Args:
            command: SubmitClaimCommandDTO with invoice_id, amount, payment_date

        Returns:
            Result[PaymentResponseDTO]: Pending payment and unchanged invoice, or error
        """
        try:
            amount = validate_amount(command.amount)

            async def work() -> Tuple[Payment, Invoice]:
                invoice = await self.ledger.lock_invoice(command.invoice_id)
                self._ensure_claimable(invoice, amount)

                payment = await self.payment_repo.create(
                    Payment(
                        invoice_id=invoice.id,
                        amount_paid=amount,
                        payment_date=command.payment_date,
                        payment_method=command.payment_method,
                        reference=command.reference,
                        status=PaymentStatus.PENDING,
                        recorded_by=command.submitted_by,
                    )
                )
                return payment, invoice

            payment, invoice = await self.uow.run_transaction(work)

            logger.info(
                f"Payment claim {payment.id} of {amount} submitted for invoice "
                f"{invoice.invoice_number} by {command.submitted_by}"
            )

            return Return.ok(
                PaymentResponseDTO(
                    payment=to_payment_dto(payment),
                    invoice=to_invoice_summary(invoice),
                )
            )

        except LedgerError as e:
            logger.warning(f"Payment claim rejected for invoice {command.invoice_id}: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment claim failed for invoice {command.invoice_id}: {e}")
            return Return.err(
                Error(
                    code="SUBMIT_CLAIM_FAILED",
                    message="Failed to submit payment claim",
                    reason=str(e),
                )
            )

    def _ensure_claimable(self, invoice: Invoice, amount: Decimal) -> None:
        balance = to_money(invoice.total_amount) - to_money(invoice.amount_paid)
        if balance <= ZERO:
            raise InvoiceAlreadyPaidError(
                f"Invoice {invoice.invoice_number} has no outstanding balance"
            )
        if amount > balance:
            raise OverpaymentError(
                f"Claim of {amount} exceeds the outstanding balance of "
                f"{balance} on invoice {invoice.invoice_number}",
                details={
                    "invoice_id": invoice.id,
                    "outstanding": str(balance),
                    "amount": str(amount),
                },
            )
