"""Invoice Factory

Builds and persists one invoice with its items as a single atomic unit,
regenerating the invoice number when it collides with an existing one.
Shared by CreateInvoice and CreateCohortInvoices.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from bursary.app.errors import DuplicateInvoiceNumberError, ValidationError
from bursary.app.repositories.invoice_item_repository import InvoiceItemRepository
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.services.unit_of_work import UnitOfWork
from bursary.domain.invoice import Invoice, InvoiceStatus, generate_invoice_number
from bursary.domain.invoice_item import InvoiceItem
from bursary.domain.money import MAX_AMOUNT, ZERO, parse_amount, sum_money
from .dtos import InvoiceItemInputDTO

logger = logging.getLogger(__name__)

DEFAULT_MAX_NUMBER_ATTEMPTS = 5

ItemLine = Tuple[str, Decimal]


def validate_items(items: List[InvoiceItemInputDTO]) -> List[ItemLine]:
    """
    Validate fee lines and normalize them to (description, amount) pairs

    Raises:
        ValidationError: EMPTY_ITEMS, INVALID_ITEM_DESCRIPTION or INVALID_ITEM_AMOUNT
    """
    if not items:
        raise ValidationError("An invoice needs at least one item", code="EMPTY_ITEMS")

    lines: List[ItemLine] = []
    for position, item in enumerate(items, start=1):
        description = (item.description or "").strip()
        if not description:
            raise ValidationError(
                f"Item {position} has no description",
                code="INVALID_ITEM_DESCRIPTION",
            )
        amount = parse_amount(item.amount)
        if amount is None:
            raise ValidationError(
                f"Item {position} ('{description}') must have an amount greater than 0 "
                f"with at most two decimal places",
                code="INVALID_ITEM_AMOUNT",
            )
        lines.append((description, amount))

    if sum_money(amount for _, amount in lines) > MAX_AMOUNT:
        raise ValidationError(
            f"Invoice total exceeds the maximum of {MAX_AMOUNT}",
            code="INVALID_ITEM_AMOUNT",
        )
    return lines


def validate_dates(issue_date: date, due_date: date) -> None:
    if due_date < issue_date:
        raise ValidationError(
            f"Due date {due_date} is before issue date {issue_date}",
            code="VALIDATION_ERROR",
        )


class InvoiceFactory:
    """
    Creates invoices atomically

    Business Rules:
    1. total_amount = sum(item amounts), amount_paid = 0, status = PENDING
    2. Invoice and items are inserted in one transaction
    3. Invoice number INV-YYYY-NNNNNN is drawn at random; a unique-constraint
       collision rolls the transaction back and retries with a fresh number,
       up to max_number_attempts
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        max_number_attempts: int = DEFAULT_MAX_NUMBER_ATTEMPTS,
        number_generator: Optional[Callable[[int], str]] = None,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.max_number_attempts = max(1, max_number_attempts)
        self.number_generator = number_generator or generate_invoice_number

    async def create(
        self,
        student_id: str,
        issue_date: date,
        due_date: date,
        lines: List[ItemLine],
    ) -> Tuple[Invoice, List[InvoiceItem]]:
        """
        Persist one invoice with its items

        Args:
            student_id: Payer
            issue_date: Issue date (its year prefixes the invoice number)
            due_date: Due date
            lines: Validated (description, amount) pairs

        Returns:
            The committed invoice and its items

        Raises:
            DuplicateInvoiceNumberError: every attempt collided
        """
        for attempt in range(1, self.max_number_attempts + 1):
            invoice_number = self.number_generator(issue_date.year)

            async def insert() -> Tuple[Invoice, List[InvoiceItem]]:
                return await self._insert(invoice_number, student_id, issue_date, due_date, lines)

            try:
                invoice, items = await self.uow.run_transaction(insert)
            except DuplicateInvoiceNumberError:
                if attempt == self.max_number_attempts:
                    logger.error(
                        f"Invoice number collision for student {student_id}; "
                        f"giving up after {attempt} attempts"
                    )
                    raise
                logger.warning(
                    f"Invoice number {invoice_number} already taken, "
                    f"regenerating (attempt {attempt}/{self.max_number_attempts})"
                )
                continue

            logger.info(
                f"Created invoice {invoice.invoice_number} for student {student_id}: "
                f"total={invoice.total_amount}, items={len(items)}"
            )
            return invoice, items

        raise DuplicateInvoiceNumberError("Could not allocate a unique invoice number")

    async def _insert(
        self,
        invoice_number: str,
        student_id: str,
        issue_date: date,
        due_date: date,
        lines: List[ItemLine],
    ) -> Tuple[Invoice, List[InvoiceItem]]:
        invoice = Invoice(
            invoice_number=invoice_number,
            student_id=student_id,
            issue_date=issue_date,
            due_date=due_date,
            total_amount=sum_money(amount for _, amount in lines),
            amount_paid=ZERO,
            status=InvoiceStatus.PENDING,
        )
        created = await self.invoice_repo.create(invoice)

        items = [
            InvoiceItem(
                invoice_id=created.id,
                description=description,
                amount=amount,
                position=position,
            )
            for position, (description, amount) in enumerate(lines)
        ]
        created_items = await self.item_repo.create_many(items)
        return created, created_items
