"""Invoice API Routes

FastAPI routes for invoice creation, lookup, deletion and direct payments.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from bursary.api.schemas.billing_request import (
    CreateCohortInvoicesRequestSchema,
    CreateInvoiceRequestSchema,
    RecordPaymentRequestSchema,
)
from bursary.app.use_cases.billing.dtos import (
    CohortInvoicesResponseDTO,
    CreateCohortInvoicesCommandDTO,
    CreateInvoiceCommandDTO,
    InvoiceDetailDTO,
    InvoiceItemInputDTO,
    InvoiceResponseDTO,
    PaymentResponseDTO,
    RecordPaymentCommandDTO,
)
from bursary.app.use_cases.billing.create_invoice import CreateInvoice
from bursary.app.use_cases.billing.create_cohort_invoices import CreateCohortInvoices
from bursary.app.use_cases.billing.delete_invoice import DeleteInvoice
from bursary.app.use_cases.billing.get_invoice import GetInvoice
from bursary.app.use_cases.billing.record_payment import RecordPayment
from bursary.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from bursary.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from bursary.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from bursary.adapter.repositories.student_repository import SqlAlchemyStudentRepository
from bursary.depends import build_unit_of_work, get_session
from bursary.api.error import ClientError

router = APIRouter(prefix="/billing/invoices", tags=["Invoices"])


def _error_example(code: str, message: str) -> dict:
    return {"application/json": {"example": {"error": {"code": code, "message": message}}}}


@router.post(
    "",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Invalid items or dates",
            "content": _error_example("INVALID_ITEM_AMOUNT", "Item 1 ('Tuition') must have an amount greater than 0"),
        },
        404: {
            "description": "Student not found",
            "content": _error_example("STUDENT_NOT_FOUND", "Active student 42 not found"),
        },
    },
)
async def create_invoice(
    request: CreateInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Create an invoice for one student.

    **Request body:**
    - `student_id` (required): Payer
    - `due_date` (required): Payment due date
    - `items` (required): At least one `{description, amount}`; every amount > 0
    - `issue_date` (optional): Defaults to today

    **Returns:**
    - 201: Invoice with its number, total and items (status PENDING)
    - 400: EMPTY_ITEMS / INVALID_ITEM_AMOUNT / INVALID_ITEM_DESCRIPTION / VALIDATION_ERROR
    - 404: STUDENT_NOT_FOUND
    """
    command = CreateInvoiceCommandDTO(
        student_id=request.student_id,
        due_date=request.due_date,
        issue_date=request.issue_date,
        items=[InvoiceItemInputDTO(**item.model_dump()) for item in request.items],
    )

    use_case = CreateInvoice(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        student_repo=SqlAlchemyStudentRepository(session),
        max_number_attempts=ApplicationConfig.INVOICE_NUMBER_MAX_ATTEMPTS,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/bulk",
    response_model=CohortInvoicesResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid selector or no matching students",
            "content": _error_example("NO_RECIPIENTS", "No students found for this selection"),
        },
    },
)
async def create_cohort_invoices(
    request: CreateCohortInvoicesRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Generate the same invoice for every active student, or every active
    student of one level.

    Each invoice commits on its own. The response reports how many were
    created and which students failed.
    """
    command = CreateCohortInvoicesCommandDTO(
        target_type=request.target_type,
        level_id=request.level_id,
        due_date=request.due_date,
        issue_date=request.issue_date,
        items=[InvoiceItemInputDTO(**item.model_dump()) for item in request.items],
    )

    use_case = CreateCohortInvoices(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        student_repo=SqlAlchemyStudentRepository(session),
        max_number_attempts=ApplicationConfig.INVOICE_NUMBER_MAX_ATTEMPTS,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{invoice_id}",
    response_model=InvoiceDetailDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Invoice not found",
            "content": _error_example("INVOICE_NOT_FOUND", "Invoice 1234 not found"),
        },
    },
)
async def get_invoice(
    invoice_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Invoice with its items and every payment (any status)."""
    use_case = GetInvoice(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {
            "description": "Invoice not found",
            "content": _error_example("INVOICE_NOT_FOUND", "Invoice 1234 not found"),
        },
        409: {
            "description": "Invoice has payments",
            "content": _error_example("INVOICE_HAS_PAYMENTS", "Invoice INV-2024-483920 has 1 payment(s) and cannot be deleted"),
        },
    },
)
async def delete_invoice(
    invoice_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Delete an invoice that has no payments recorded against it."""
    use_case = DeleteInvoice(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{invoice_id}/payments",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {
            "description": "Invoice not found",
            "content": _error_example("INVOICE_NOT_FOUND", "Invoice 1234 not found"),
        },
        409: {
            "description": "Payment exceeds outstanding balance",
            "content": _error_example("OVERPAYMENT", "Payment of 7000.00 exceeds the outstanding balance of 6000.00 on invoice INV-2024-483920"),
        },
        503: {
            "description": "Store busy, retry",
            "content": _error_example("TRANSIENT_STORE_ERROR", "The ledger store is temporarily unavailable, please retry"),
        },
    },
)
async def record_payment(
    invoice_id: str,
    request: RecordPaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Record a trusted payment (cashier, bank import).

    The payment is effective immediately: the invoice's amount_paid and
    status are recomputed in the same transaction.

    **Returns:**
    - 201: Payment and the updated invoice
    - 404: INVOICE_NOT_FOUND
    - 409: OVERPAYMENT
    """
    command = RecordPaymentCommandDTO(
        invoice_id=invoice_id,
        amount=request.amount,
        payment_date=request.payment_date,
        payment_method=request.payment_method,
        reference=request.reference,
        recorded_by=request.recorded_by,
    )

    use_case = RecordPayment(
        uow=build_unit_of_work(session),
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
