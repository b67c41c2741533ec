"""CreateCohortInvoices Use Case

Bulk invoice generation for all active students or one academic level.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional
from libs.result import Result, Return, Error
from bursary.app.errors import LedgerError, NoRecipientsError, ValidationError
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.invoice_item_repository import InvoiceItemRepository
from bursary.app.repositories.student_repository import StudentRepository
from .dtos import (
    BulkInvoiceFailureDTO,
    CohortInvoicesResponseDTO,
    CohortTarget,
    CreateCohortInvoicesCommandDTO,
    InvoiceSummaryDTO,
)
from .invoice_factory import (
    DEFAULT_MAX_NUMBER_ATTEMPTS,
    InvoiceFactory,
    validate_dates,
    validate_items,
)
from .mappers import to_invoice_summary

logger = logging.getLogger(__name__)


class CreateCohortInvoices:
    """
    Use Case: Generate the same invoice for every student in a cohort

    Business Rules:
    1. Items are validated once, before any invoice is written
    2. The cohort is resolved first; an empty cohort fails with NO_RECIPIENTS
    3. Each invoice is its own transaction: a failure for one student is
       reported and the run continues; committed invoices are never undone
    4. Invoice number collisions are retried per invoice

    Flow:
    1. Validate items, dates and selector
    2. Resolve student IDs
    3. For each student: create invoice (InvoiceFactory)
    4. Return counts, created invoices and failures
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

    async def execute(self, command: CreateCohortInvoicesCommandDTO) -> Result[CohortInvoicesResponseDTO]:
        """
        Execute bulk invoice generation

        Args:
            command: CreateCohortInvoicesCommandDTO with selector, due_date, items

        Returns:
            Result[CohortInvoicesResponseDTO]: Partial-success summary or error
        """
        start_time = time.time()

        try:
            # Step 1: Validate input
            lines = validate_items(command.items)
            issue_date = command.issue_date or datetime.now(timezone.utc).date()
            validate_dates(issue_date, command.due_date)

            # Step 2: Resolve the cohort
            student_ids = await self._resolve_cohort(command)
            if not student_ids:
                raise NoRecipientsError("No students found for this selection")

        except LedgerError as e:
            logger.warning(f"Bulk invoice generation rejected: {e.code} {e.message}")
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Bulk invoice generation failed: {e}")
            return Return.err(
                Error(
                    code="BULK_INVOICE_FAILED",
                    message="Failed to generate invoices",
                    reason=str(e),
                )
            )

        logger.info(
            f"Generating invoices for {len(student_ids)} students "
            f"(target={command.target_type.value}, level={command.level_id})"
        )

        # Step 3: One transaction per invoice
        created: List[InvoiceSummaryDTO] = []
        failures: List[BulkInvoiceFailureDTO] = []

        for student_id in student_ids:
            try:
                invoice, _ = await self.factory.create(
                    student_id=student_id,
                    issue_date=issue_date,
                    due_date=command.due_date,
                    lines=lines,
                )
                created.append(to_invoice_summary(invoice))
            except LedgerError as e:
                logger.error(f"Invoice for student {student_id} failed: {e.code} {e.message}")
                failures.append(
                    BulkInvoiceFailureDTO(student_id=student_id, code=e.code, message=e.message)
                )
            except Exception as e:
                logger.error(f"Invoice for student {student_id} failed: {e}")
                failures.append(
                    BulkInvoiceFailureDTO(
                        student_id=student_id,
                        code="CREATE_INVOICE_FAILED",
                        message="Failed to create invoice",
                    )
                )

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Bulk invoice generation complete: {len(created)} created, "
            f"{len(failures)} failed out of {len(student_ids)} in {execution_time_ms}ms"
        )

        # Step 4: Build response
        return Return.ok(
            CohortInvoicesResponseDTO(
                requested=len(student_ids),
                count=len(created),
                failed_count=len(failures),
                invoices=created,
                failures=failures,
            )
        )

    async def _resolve_cohort(self, command: CreateCohortInvoicesCommandDTO) -> List[str]:
        if command.target_type == CohortTarget.ALL:
            return await self.student_repo.get_active_ids()

        if not command.level_id:
            raise ValidationError("level_id is required when target_type is LEVEL")
        return await self.student_repo.get_active_ids_by_level(command.level_id)
