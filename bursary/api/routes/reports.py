"""Reporting API Routes

Read-only balances and outstanding totals.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from bursary.app.use_cases.billing.dtos import (
    OutstandingSummaryResponseDTO,
    StudentBalanceResponseDTO,
    StudentInvoicesResponseDTO,
)
from bursary.app.use_cases.billing.get_student_balance import GetStudentBalance
from bursary.app.use_cases.billing.get_outstanding_summary import GetOutstandingSummary
from bursary.app.use_cases.billing.list_student_invoices import ListStudentInvoices
from bursary.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from bursary.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from bursary.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from bursary.adapter.repositories.student_repository import SqlAlchemyStudentRepository
from bursary.depends import get_session
from bursary.api.error import ClientError

router = APIRouter(prefix="/billing", tags=["Reports"])


@router.get("/students/{student_id}/balance", response_model=StudentBalanceResponseDTO)
async def get_student_balance(
    student_id: str,
    session: AsyncSession = Depends(get_session),
):
    """
    Billed, paid and outstanding totals for one student.

    Pending claims are not counted as paid.
    """
    use_case = GetStudentBalance(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        student_repo=SqlAlchemyStudentRepository(session),
    )
    result = await use_case.execute(student_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/students/{student_id}/invoices", response_model=StudentInvoicesResponseDTO)
async def list_student_invoices(
    student_id: str,
    session: AsyncSession = Depends(get_session),
):
    """A student's invoices, newest first, with items and payments."""
    use_case = ListStudentInvoices(
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(student_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/reports/outstanding", response_model=OutstandingSummaryResponseDTO)
async def get_outstanding_summary(session: AsyncSession = Depends(get_session)):
    """Every student with a non-zero balance, and the school-wide total."""
    use_case = GetOutstandingSummary(invoice_repo=SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error)

    return result.value
