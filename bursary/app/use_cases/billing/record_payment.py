"""RecordPayment Use Case

Records a trusted payment against an invoice and updates the invoice's
paid total and status in the same transaction.
"""

import logging
from decimal import Decimal
from typing import Tuple
from libs.result import Result, Return, Error
from bursary.app.errors import LedgerError, ValidationError
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.invoice import Invoice
from bursary.domain.money import parse_amount
from bursary.domain.payment import Payment, PaymentStatus
from .dtos import PaymentResponseDTO, RecordPaymentCommandDTO
from .invoice_ledger import InvoiceLedger
from .mappers import to_invoice_summary, to_payment_dto

logger = logging.getLogger(__name__)


def validate_amount(amount) -> Decimal:
    """Exact payment amount in cents; zero, negative, non-finite or sub-cent values are refused"""
    value = parse_amount(amount)
    if value is None:
        raise ValidationError(
            "Payment amount must be greater than 0 with at most two decimal places",
            code="INVALID_AMOUNT",
        )
    return value


class RecordPayment:
    """
    Use Case: Record a direct payment

    Business Rules:
    1. amount > 0
    2. Direct payments are effective immediately (status APPROVED)
    3. amount_paid may not exceed total_amount (OVERPAYMENT)
    4. Pessimistic locking: the invoice row is locked before the ledger read,
       so concurrent payments on one invoice are applied one after another
    5. Payment insert and invoice update commit together or not at all

    Flow:
    1. Validate amount
    2. Lock invoice (SELECT FOR UPDATE)
    3. Check outstanding balance
    4. Insert payment
    5. Recompute amount_paid / status from approved payments
    6. Commit (retried on transient store failures)
    7. Return response
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

    async def execute(self, command: RecordPaymentCommandDTO) -> Result[PaymentResponseDTO]:
        """
        Execute payment recording

        Args:
            command: RecordPaymentCommandDTO with invoice_id, amount, payment_date

        Returns:
            Result[PaymentResponseDTO]: Payment and updated invoice, or error
        """
        try:
            # Step 1: Validate input
            amount = validate_amount(command.amount)

            async def work() -> Tuple[Payment, Invoice]:
                # Step 2: Lock invoice
                invoice = await self.ledger.lock_invoice(command.invoice_id)

                # Step 3: Reject over-payment
                await self.ledger.ensure_capacity(invoice, amount)

                # Step 4: Insert effective payment
                payment = await self.payment_repo.create(
                    Payment(
                        invoice_id=invoice.id,
                        amount_paid=amount,
                        payment_date=command.payment_date,
                        payment_method=command.payment_method,
                        reference=command.reference,
                        status=PaymentStatus.APPROVED,
                        recorded_by=command.recorded_by,
                    )
                )

                # Step 5: Recompute ledger aggregate
                invoice = await self.ledger.recompute(invoice)
                return payment, invoice

            # Step 6: Commit
            payment, invoice = await self.uow.run_transaction(work)

            logger.info(
                f"Recorded payment {payment.id} of {amount} on invoice "
                f"{invoice.invoice_number} (status={invoice.status.value})"
            )

            # Step 7: Build response
            return Return.ok(
                PaymentResponseDTO(
                    payment=to_payment_dto(payment),
                    invoice=to_invoice_summary(invoice),
                )
            )

        except LedgerError as e:
            logger.warning(f"Payment rejected for invoice {command.invoice_id}: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment recording failed for invoice {command.invoice_id}: {e}")
            return Return.err(
                Error(
                    code="RECORD_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )
