"""Get Student Balance Use Case

Retrieves a student's billed, paid and outstanding totals.
"""

from libs.result import Result, Return, Error
from bursary.app.errors import StudentNotFoundError
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.student_repository import StudentRepository
from bursary.app.use_cases.billing.dtos import StudentBalanceResponseDTO


class GetStudentBalance:
    """
    Get Student Balance Use Case

    Read-only operation. Sums the invoices' authoritative amount_paid, so a
    PENDING claim never shows up as money received.

    outstanding = sum(total_amount - amount_paid) over the student's invoices
    """

    def __init__(self, invoice_repo: InvoiceRepository, student_repo: StudentRepository):
        """
        Initialize GetStudentBalance use case

        Args:
            invoice_repo: Repository for invoice aggregates
            student_repo: Repository for checking the student exists
        """
        self.invoice_repo = invoice_repo
        self.student_repo = student_repo

    async def execute(self, student_id: str) -> Result[StudentBalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            student_id: The student identifier

        Returns:
            Result[StudentBalanceResponseDTO]: Success with totals or error

        Errors:
            STUDENT_NOT_FOUND: No invoices and no active student with this id
        """
        try:
            totals = await self.invoice_repo.get_student_totals(student_id)

            # A student without invoices has a zero balance, provided they exist.
            # Soft-deleted students with invoices are still reported.
            if totals.invoice_count == 0:
                student = await self.student_repo.get_active_by_id(student_id)
                if not student:
                    return Return.err(StudentNotFoundError(student_id).to_error())

            return Return.ok(
                StudentBalanceResponseDTO(
                    student_id=student_id,
                    invoice_count=totals.invoice_count,
                    total_billed=totals.total_billed,
                    total_paid=totals.total_paid,
                    outstanding=totals.outstanding,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_BALANCE_FAILED",
                    message="Failed to retrieve student balance",
                    reason=str(e),
                )
            )
