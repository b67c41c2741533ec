"""CreateInvoice Use Case

Creates one invoice for one student from a list of fee items.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from libs.result import Result, Return, Error
from bursary.app.errors import LedgerError, StudentNotFoundError
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.invoice_item_repository import InvoiceItemRepository
from bursary.app.repositories.student_repository import StudentRepository
from .dtos import CreateInvoiceCommandDTO, InvoiceResponseDTO
from .invoice_factory import (
    DEFAULT_MAX_NUMBER_ATTEMPTS,
    InvoiceFactory,
    validate_dates,
    validate_items,
)
from .mappers import to_invoice_response

logger = logging.getLogger(__name__)


class CreateInvoice:
    """
    Use Case: Create an invoice for a student

    Business Rules:
    1. At least one item; every item amount > 0
    2. The student must exist and be active
    3. total_amount = sum(items), amount_paid = 0, status = PENDING
    4. Invoice + items are persisted atomically
    5. Invoice number collisions are retried with a fresh number

    Flow:
    1. Validate items and dates
    2. Check the student
    3. Insert invoice and items (InvoiceFactory, one transaction)
    4. Return response
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        student_repo: StudentRepository,
        max_number_attempts: int = DEFAULT_MAX_NUMBER_ATTEMPTS,
        number_generator: Optional[Callable[[int], str]] = None,
    ):
        self.uow = uow
        self.student_repo = student_repo
        self.factory = InvoiceFactory(
            uow=uow,
            invoice_repo=invoice_repo,
            item_repo=item_repo,
            max_number_attempts=max_number_attempts,
            number_generator=number_generator,
        )

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice creation

        Args:
            command: CreateInvoiceCommandDTO with student_id, due_date, items

        Returns:
            Result[InvoiceResponseDTO]: Created invoice or error
        """
        try:
            # Step 1: Validate input
            lines = validate_items(command.items)
            issue_date = command.issue_date or datetime.now(timezone.utc).date()
            validate_dates(issue_date, command.due_date)

            # Step 2: Payer must be an active student
            student = await self.student_repo.get_active_by_id(command.student_id)
            if not student:
                raise StudentNotFoundError(command.student_id)

            # Step 3: Persist invoice + items atomically
            invoice, items = await self.factory.create(
                student_id=command.student_id,
                issue_date=issue_date,
                due_date=command.due_date,
                lines=lines,
            )

            return Return.ok(to_invoice_response(invoice, items))

        except LedgerError as e:
            logger.warning(f"Invoice creation rejected for student {command.student_id}: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice creation failed for student {command.student_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_INVOICE_FAILED",
                    message="Failed to create invoice",
                    reason=str(e),
                )
            )
