"""VerifyPaymentClaim Use Case

Approves or rejects a pending payment claim. Approval makes the payment
effective and updates the invoice ledger; rejection is terminal and leaves
the invoice untouched.
"""

import logging
from typing import Tuple
from libs.result import Result, Return, Error
from bursary.app.errors import (
    AlreadyProcessedError,
    LedgerError,
    PaymentNotFoundError,
    ValidationError,
)
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.base import utcnow
from bursary.domain.invoice import Invoice
from bursary.domain.payment import ClaimDecision, Payment, PaymentStatus
from .dtos import ClaimVerificationResponseDTO, VerifyClaimCommandDTO
from .invoice_ledger import InvoiceLedger
from .mappers import to_invoice_summary, to_payment_dto

logger = logging.getLogger(__name__)


class VerifyPaymentClaim:
    """
    Use Case: Verify a payment claim

    Business Rules:
    1. Only PENDING payments can be verified; anything else is ALREADY_PROCESSED
    2. Exactly one of two concurrent verifications succeeds: the invoice is
       locked first, the payment row is re-read under lock, and the status
       change itself only applies to a row that is still PENDING
    3. APPROVE: payment becomes effective, amount_paid/status recomputed;
       rejected with OVERPAYMENT if the balance no longer covers the claim
    4. REJECT: payment becomes REJECTED, invoice unchanged
    5. verified_by / verified_at are recorded either way

    Flow:
    1. Load payment (to find its invoice)
    2. Lock invoice, then lock and re-read payment
    3. Check status is PENDING
    4. Apply decision
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

    async def execute(self, command: VerifyClaimCommandDTO) -> Result[ClaimVerificationResponseDTO]:
        """
        Execute claim verification

        Args:
            command: VerifyClaimCommandDTO with payment_id, decision, actor_id

        Returns:
            Result[ClaimVerificationResponseDTO]: Decided payment and invoice, or error
        """
        try:
            actor_id = (command.actor_id or "").strip()
            if not actor_id:
                raise ValidationError("actor_id is required to verify a claim")

            async def work() -> Tuple[Payment, Invoice]:
                # Step 1: Locate the claim
                payment = await self.payment_repo.get_by_id(command.payment_id)
                if not payment:
                    raise PaymentNotFoundError(command.payment_id)

                # Step 2: Lock order is invoice, then payment
                invoice = await self.ledger.lock_invoice(payment.invoice_id)
                payment = await self.payment_repo.get_by_id(command.payment_id, for_update=True)
                if not payment:
                    raise PaymentNotFoundError(command.payment_id)

                # Step 3: Single transition out of PENDING
                if payment.status != PaymentStatus.PENDING:
                    raise AlreadyProcessedError(payment.id, payment.status.value)

                # Step 4: Apply decision; the store refuses a row that left PENDING meanwhile
                if command.decision == ClaimDecision.APPROVE:
                    await self.ledger.ensure_capacity(invoice, payment.amount_paid)
                    status = PaymentStatus.APPROVED
                else:
                    status = PaymentStatus.REJECTED

                payment = await self.payment_repo.mark_verified(payment, status, actor_id, utcnow())

                if payment.status == PaymentStatus.APPROVED:
                    invoice = await self.ledger.recompute(invoice)
                return payment, invoice

            payment, invoice = await self.uow.run_transaction(work)

            logger.info(
                f"Payment claim {payment.id} {payment.status.value} by {actor_id}; "
                f"invoice {invoice.invoice_number} status={invoice.status.value}"
            )

            return Return.ok(
                ClaimVerificationResponseDTO(
                    decision=command.decision.value,
                    payment=to_payment_dto(payment),
                    invoice=to_invoice_summary(invoice),
                )
            )

        except LedgerError as e:
            logger.warning(f"Claim verification rejected for payment {command.payment_id}: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Claim verification failed for payment {command.payment_id}: {e}")
            return Return.err(
                Error(
                    code="VERIFY_CLAIM_FAILED",
                    message="Failed to verify payment claim",
                    reason=str(e),
                )
            )
