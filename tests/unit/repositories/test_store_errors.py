"""Unit tests for store error translation in the SQLAlchemy repositories"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import DataError, IntegrityError

from bursary.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from bursary.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from bursary.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from bursary.app.errors import (
    AlreadyProcessedError,
    ConstraintViolationError,
    DuplicateInvoiceNumberError,
    ValidationError,
)
from bursary.domain.invoice_item import InvoiceItem
from bursary.domain.payment import PaymentStatus
from tests.factories import make_invoice, make_payment


class FakeDriverError(Exception):
    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


def numeric_overflow() -> DataError:
    return DataError("INSERT", {}, FakeDriverError("numeric field overflow", "22003"))


def failing_session(error) -> MagicMock:
    session = MagicMock()
    session.flush = AsyncMock(side_effect=error)
    session.refresh = AsyncMock()
    return session


@pytest.mark.asyncio
class TestOutOfRangeAmounts:

    async def test_invoice_overflow_is_a_validation_error(self):
        repo = SqlAlchemyInvoiceRepository(failing_session(numeric_overflow()))

        with pytest.raises(ValidationError) as exc_info:
            await repo.create(make_invoice())

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert "numeric field overflow" in exc_info.value.reason

    async def test_item_overflow_is_an_item_amount_error(self):
        repo = SqlAlchemyInvoiceItemRepository(failing_session(numeric_overflow()))
        item = InvoiceItem(invoice_id="inv-1", description="Tuition", amount=Decimal("1.00"), position=0)

        with pytest.raises(ValidationError) as exc_info:
            await repo.create_many([item])

        assert exc_info.value.code == "INVALID_ITEM_AMOUNT"

    async def test_payment_overflow_is_an_amount_error(self):
        repo = SqlAlchemyPaymentRepository(failing_session(numeric_overflow()))

        with pytest.raises(ValidationError) as exc_info:
            await repo.create(make_payment())

        assert exc_info.value.code == "INVALID_AMOUNT"


@pytest.mark.asyncio
class TestIntegrityErrors:

    async def test_duplicate_invoice_number(self):
        error = IntegrityError("INSERT", {}, FakeDriverError("UNIQUE constraint failed: invoices.invoice_number", "23505"))
        repo = SqlAlchemyInvoiceRepository(failing_session(error))

        with pytest.raises(DuplicateInvoiceNumberError):
            await repo.create(make_invoice())

    async def test_other_invoice_constraint(self):
        error = IntegrityError("INSERT", {}, FakeDriverError("CHECK constraint failed", "23514"))
        repo = SqlAlchemyInvoiceRepository(failing_session(error))

        with pytest.raises(ConstraintViolationError):
            await repo.create(make_invoice())


@pytest.mark.asyncio
class TestMarkVerified:

    def _session(self, rowcount, stored_status):
        session = MagicMock()
        session.execute = AsyncMock(return_value=MagicMock(rowcount=rowcount))

        async def refresh(payment):
            payment.status = stored_status

        session.refresh = AsyncMock(side_effect=refresh)
        return session

    async def test_pending_row_is_moved(self):
        repo = SqlAlchemyPaymentRepository(self._session(1, PaymentStatus.APPROVED))
        payment = make_payment()

        updated = await repo.mark_verified(payment, PaymentStatus.APPROVED, "admin-1", None)

        assert updated.status == PaymentStatus.APPROVED

    async def test_row_that_left_pending_is_refused(self):
        repo = SqlAlchemyPaymentRepository(self._session(0, PaymentStatus.REJECTED))

        with pytest.raises(AlreadyProcessedError) as exc_info:
            await repo.mark_verified(make_payment(), PaymentStatus.APPROVED, "admin-1", None)

        assert exc_info.value.status == "REJECTED"
