"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session, with
pessimistic row locking for ledger updates.
"""

from typing import Optional, List
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import delete
from sqlalchemy.exc import DataError, IntegrityError
from bursary.app.errors import ConstraintViolationError, DuplicateInvoiceNumberError, ValidationError
from bursary.app.repositories.invoice_repository import InvoiceRepository, StudentOutstanding
from bursary.domain.base import utcnow
from bursary.domain.invoice import Invoice
from bursary.domain.invoice_item import InvoiceItem
from bursary.domain.money import to_money


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (get_by_id(for_update=True))
    - Unique invoice_number violations surface as DuplicateInvoiceNumberError
    - Reporting aggregates computed in SQL over invoices.amount_paid
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Flushes immediately so a duplicate invoice number is detected inside
        the caller's transaction.
        """
        self.session.add(invoice)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if "invoice_number" in str(e.orig):
                raise DuplicateInvoiceNumberError(
                    f"Invoice number {invoice.invoice_number} is already in use",
                    reason=str(e.orig),
                ) from e
            raise ConstraintViolationError(
                "Invoice violates a store constraint",
                reason=str(e.orig),
            ) from e
        except DataError as e:
            raise ValidationError(
                "Invoice amount is out of range",
                reason=str(e.orig),
            ) from e
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional row-level locking

        Args:
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE and
                        reloads the attributes of any instance already in the session

        Returns:
            Invoice if found, None otherwise
        """
        statement = select(Invoice).where(Invoice.id == invoice_id)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_student_id(self, student_id: str) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.student_id == student_id)
            .order_by(Invoice.issue_date.desc(), Invoice.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_all(self) -> List[Invoice]:
        statement = select(Invoice).order_by(Invoice.created_at)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        invoice.updated_at = utcnow()
        self.session.add(invoice)
        await self.session.flush()
        return invoice

    async def delete(self, invoice: Invoice) -> None:
        """Delete the invoice and its items (payments must already be absent)"""
        await self.session.execute(
            delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id)
        )
        await self.session.delete(invoice)
        await self.session.flush()

    async def get_student_totals(self, student_id: str) -> StudentOutstanding:
        statement = (
            select(
                func.count(Invoice.id),
                func.coalesce(func.sum(Invoice.total_amount), 0),
                func.coalesce(func.sum(Invoice.amount_paid), 0),
            )
            .where(Invoice.student_id == student_id)
        )
        result = await self.session.execute(statement)
        invoice_count, total_billed, total_paid = result.one()
        return StudentOutstanding(
            student_id=student_id,
            invoice_count=int(invoice_count),
            total_billed=to_money(total_billed),
            total_paid=to_money(total_paid),
        )

    async def get_outstanding_by_student(self) -> List[StudentOutstanding]:
        total_billed = func.sum(Invoice.total_amount)
        total_paid = func.sum(Invoice.amount_paid)
        statement = (
            select(Invoice.student_id, func.count(Invoice.id), total_billed, total_paid)
            .group_by(Invoice.student_id)
            .having(total_billed - total_paid != 0)
            .order_by(Invoice.student_id)
        )
        result = await self.session.execute(statement)
        return [
            StudentOutstanding(
                student_id=student_id,
                invoice_count=int(invoice_count),
                total_billed=to_money(billed),
                total_paid=to_money(paid),
            )
            for student_id, invoice_count, billed, paid in result.all()
        ]
