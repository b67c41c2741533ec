"""Payment Claim API Routes

Payer claim submission and administrator verification.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from bursary.api.schemas.billing_request import SubmitClaimRequestSchema, VerifyClaimRequestSchema
from bursary.app.use_cases.billing.dtos import (
    ClaimVerificationResponseDTO,
    PaymentResponseDTO,
    SubmitClaimCommandDTO,
    VerifyClaimCommandDTO,
)
from bursary.app.use_cases.billing.submit_claim import SubmitPaymentClaim
from bursary.app.use_cases.billing.verify_claim import VerifyPaymentClaim
from bursary.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from bursary.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from bursary.depends import build_unit_of_work, get_session
from bursary.api.error import ClientError

router = APIRouter(prefix="/billing/payments", tags=["Payments"])


@router.post(
    "/claims",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {
            "description": "Invoice already settled or claim too large",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_ALREADY_PAID",
                            "message": "Invoice INV-2024-483920 has no outstanding balance"
                        }
                    }
                }
            }
        }
    }
)
async def submit_claim(
    request: SubmitClaimRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Submit a payment claim (e.g. a bank slip) for administrator review.

    The claim is stored PENDING and does not change the invoice's balance
    until it is approved.
    """
    command = SubmitClaimCommandDTO(
        invoice_id=request.invoice_id,
        amount=request.amount,
        payment_date=request.payment_date,
        payment_method=request.payment_method,
        reference=request.reference,
        submitted_by=request.submitted_by,
    )

    use_case = SubmitPaymentClaim(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{payment_id}/verify",
    response_model=ClaimVerificationResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Payment not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PAYMENT_NOT_FOUND",
                            "message": "Payment 1234 not found"
                        }
                    }
                }
            }
        },
        409: {
            "description": "Claim already approved or rejected",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "ALREADY_PROCESSED",
                            "message": "Payment 1234 has already been processed (status=APPROVED)"
                        }
                    }
                }
            }
        }
    }
)
async def verify_claim(
    payment_id: str,
    request: VerifyClaimRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Approve or reject a pending claim.

    The caller is assumed to be an authorized administrator; `actor_id` is
    recorded as the verifier. Approval updates the invoice ledger in the
    same transaction. A claim can be decided once.
    """
    command = VerifyClaimCommandDTO(
        payment_id=payment_id,
        decision=request.decision,
        actor_id=request.actor_id,
    )

    use_case = VerifyPaymentClaim(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
