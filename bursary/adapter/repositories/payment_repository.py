"""SQLAlchemy implementation of PaymentRepository

Provides persistence for Payment rows and the effective-payment aggregate the
invoice ledger is recomputed from.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import update
from sqlalchemy.exc import DataError, IntegrityError
from bursary.app.errors import AlreadyProcessedError, ConstraintViolationError, ValidationError
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.money import to_money
from bursary.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Features:
    - Row locking for claim verification (get_by_id(for_update=True))
    - Verification is a conditional UPDATE guarded on status = PENDING
    - Aggregate of APPROVED payments computed in SQL within the caller's transaction
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        """
        Create a new payment row

        Raises:
            ConstraintViolationError: unknown invoice or rejected amount
        """
        self.session.add(payment)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConstraintViolationError(
                "Payment violates a store constraint",
                reason=str(e.orig),
            ) from e
        except DataError as e:
            raise ValidationError(
                "Payment amount is out of range",
                code="INVALID_AMOUNT",
                reason=str(e.orig),
            ) from e
        await self.session.refresh(payment)
        return payment

    async def get_by_id(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        stmt = select(Payment).where(Payment.id == payment_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_invoice_id(self, invoice_id: str) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date, Payment.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_verified(
        self,
        payment: Payment,
        status: PaymentStatus,
        verified_by: str,
        verified_at: datetime,
    ) -> Payment:
        stmt = (
            update(Payment)
            .where(Payment.id == payment.id)
            .where(Payment.status == PaymentStatus.PENDING)
            .values(status=status, verified_by=verified_by, verified_at=verified_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.refresh(payment)
        if result.rowcount != 1:
            raise AlreadyProcessedError(payment.id, payment.status.value)
        return payment

    async def get_effective_total(self, invoice_id: str) -> Decimal:
        """
        Sum of APPROVED payments for an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            Two-place Decimal (0.00 when the invoice has no effective payments)
        """
        stmt = (
            select(func.coalesce(func.sum(Payment.amount_paid), 0))
            .where(Payment.invoice_id == invoice_id)
            .where(Payment.status == PaymentStatus.APPROVED)
        )
        result = await self.session.execute(stmt)
        return to_money(result.scalar_one())

    async def count_by_invoice_id(self, invoice_id: str) -> int:
        stmt = (
            select(func.count(Payment.id))
            .where(Payment.invoice_id == invoice_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
