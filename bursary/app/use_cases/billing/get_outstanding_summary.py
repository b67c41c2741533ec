"""Get Outstanding Summary Use Case

School-wide report of students who still owe money.
"""

from libs.result import Result, Return, Error
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.use_cases.billing.dtos import (
    OutstandingSummaryResponseDTO,
    StudentBalanceResponseDTO,
)
from bursary.domain.money import sum_money


class GetOutstandingSummary:
    """Per-student outstanding balances (non-zero only) and their grand total"""

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self) -> Result[OutstandingSummaryResponseDTO]:
        try:
            rows = await self.invoice_repo.get_outstanding_by_student()

            students = [
                StudentBalanceResponseDTO(
                    student_id=row.student_id,
                    invoice_count=row.invoice_count,
                    total_billed=row.total_billed,
                    total_paid=row.total_paid,
                    outstanding=row.outstanding,
                )
                for row in rows
            ]

            return Return.ok(
                OutstandingSummaryResponseDTO(
                    students=students,
                    student_count=len(students),
                    total_outstanding=sum_money(s.outstanding for s in students),
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="OUTSTANDING_SUMMARY_FAILED",
                    message="Failed to build outstanding summary",
                    reason=str(e),
                )
            )
