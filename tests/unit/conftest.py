import pytest
from unittest.mock import AsyncMock, MagicMock

from bursary.app.services.unit_of_work import UnitOfWork


class StubUnitOfWork(UnitOfWork):
    """Real run_transaction loop over mocked commit/rollback"""

    retry_backoff_seconds = 0

    def __init__(self):
        self.commit = AsyncMock()
        self.rollback = AsyncMock()

    async def commit(self):
        pass

    async def rollback(self):
        pass


@pytest.fixture
def mock_uow():
    """Unit of work whose commit/rollback calls can be asserted"""
    return StubUnitOfWork()


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    return repo


def mark_verified(payment, status, verified_by, verified_at):
    payment.status = status
    payment.verified_by = verified_by
    payment.verified_at = verified_at
    return payment


@pytest.fixture
def mock_payment_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda payment: payment)
    repo.mark_verified = AsyncMock(side_effect=mark_verified)
    return repo


@pytest.fixture
def mock_item_repo():
    repo = MagicMock()
    repo.create_many = AsyncMock(side_effect=lambda items: items)
    return repo


@pytest.fixture
def mock_student_repo():
    return MagicMock()
