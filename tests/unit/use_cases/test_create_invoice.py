"""Unit tests for CreateInvoice use case

Tests cover:
- Successful creation (total = sum of items, status PENDING)
- Item validation (empty list, non-positive or sub-cent amount, blank description)
- Unknown student
- Invoice number collision retry
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from itertools import count
from unittest.mock import AsyncMock

from bursary.app.errors import DuplicateInvoiceNumberError
from bursary.app.use_cases.billing.create_invoice import CreateInvoice
from bursary.app.use_cases.billing.dtos import CreateInvoiceCommandDTO, InvoiceItemInputDTO
from bursary.domain.student import Student


def sequential_numbers():
    counter = count(100001)
    return lambda year: f"INV-{year}-{next(counter)}"


@pytest.fixture
def create_use_case(mock_uow, mock_invoice_repo, mock_item_repo, mock_student_repo):
    mock_invoice_repo.create = AsyncMock(side_effect=lambda invoice: invoice)
    mock_student_repo.get_active_by_id = AsyncMock(
        return_value=Student(id="student-1", full_name="Ada Obi", level_id="grade-7")
    )
    return CreateInvoice(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        item_repo=mock_item_repo,
        student_repo=mock_student_repo,
        number_generator=sequential_numbers(),
    )


@pytest.fixture
def sample_command():
    return CreateInvoiceCommandDTO(
        student_id="student-1",
        issue_date=date(2024, 9, 1),
        due_date=date(2024, 9, 30),
        items=[
            InvoiceItemInputDTO(description="Tuition", amount=Decimal("8000.00")),
            InvoiceItemInputDTO(description="Bus fee", amount=Decimal("2000.00")),
        ],
    )


@pytest.mark.asyncio
class TestCreateInvoiceSuccess:

    async def test_creates_pending_invoice_with_item_total(
        self, create_use_case, mock_uow, mock_item_repo, sample_command
    ):
        """
        Given: Two items (8000 + 2000)
        When: CreateInvoice is executed
        Then: total 10000, amount_paid 0, PENDING, items persisted, one commit
        """
        result = await create_use_case.execute(sample_command)

        assert result.is_ok()
        invoice = result.value
        assert invoice.total_amount == Decimal("10000.00")
        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.balance == Decimal("10000.00")
        assert invoice.status == "PENDING"
        assert invoice.invoice_number == "INV-2024-100001"
        assert [item.description for item in invoice.items] == ["Tuition", "Bus fee"]

        persisted = mock_item_repo.create_many.await_args.args[0]
        assert [item.position for item in persisted] == [0, 1]
        assert all(item.invoice_id == invoice.invoice_id for item in persisted)
        mock_uow.commit.assert_awaited_once()

    async def test_issue_date_defaults_to_today(self, create_use_case, sample_command):
        sample_command.issue_date = None
        sample_command.due_date = date(2999, 1, 1)

        result = await create_use_case.execute(sample_command)

        assert result.is_ok()
        assert result.value.issue_date == datetime.now(timezone.utc).date()


@pytest.mark.asyncio
class TestCreateInvoiceValidation:

    async def test_empty_items_rejected(self, create_use_case, mock_invoice_repo, mock_uow, sample_command):
        sample_command.items = []

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "EMPTY_ITEMS"
        mock_invoice_repo.create.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    @pytest.mark.parametrize("amount", ["0", "-5.00"])
    async def test_non_positive_item_amount_rejected(
        self, create_use_case, mock_invoice_repo, sample_command, amount
    ):
        sample_command.items[1] = InvoiceItemInputDTO(description="Bus fee", amount=Decimal(amount))

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "INVALID_ITEM_AMOUNT"
        assert "Bus fee" in result.error.message
        mock_invoice_repo.create.assert_not_awaited()

    @pytest.mark.parametrize("amount", ["100.005", "0.001"])
    async def test_sub_cent_item_amount_rejected(
        self, create_use_case, mock_invoice_repo, sample_command, amount
    ):
        """Sub-cent amounts are refused rather than rounded into the total"""
        sample_command.items[1] = InvoiceItemInputDTO(description="Bus fee", amount=Decimal(amount))

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "INVALID_ITEM_AMOUNT"
        mock_invoice_repo.create.assert_not_awaited()

    async def test_total_above_storable_maximum_rejected(self, create_use_case, mock_invoice_repo, sample_command):
        sample_command.items = [
            InvoiceItemInputDTO(description="Tuition", amount=Decimal("9000000000000000.00")),
            InvoiceItemInputDTO(description="Boarding", amount=Decimal("1000000000000000.00")),
        ]

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "INVALID_ITEM_AMOUNT"
        mock_invoice_repo.create.assert_not_awaited()

    async def test_blank_description_rejected(self, create_use_case, sample_command):
        sample_command.items[0] = InvoiceItemInputDTO(description="   ", amount=Decimal("10"))

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "INVALID_ITEM_DESCRIPTION"

    async def test_due_date_before_issue_date_rejected(self, create_use_case, sample_command):
        sample_command.due_date = date(2024, 8, 1)

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"

    async def test_unknown_student_rejected(
        self, create_use_case, mock_student_repo, mock_invoice_repo, sample_command
    ):
        mock_student_repo.get_active_by_id = AsyncMock(return_value=None)

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "STUDENT_NOT_FOUND"
        mock_invoice_repo.create.assert_not_awaited()


@pytest.mark.asyncio
class TestInvoiceNumberCollision:

    async def test_collision_is_retried_with_fresh_number(
        self, create_use_case, mock_invoice_repo, mock_uow, sample_command
    ):
        """
        Given: The first drawn number already exists
        When: CreateInvoice is executed
        Then: The transaction is rolled back and retried with the next number
        """
        mock_invoice_repo.create = AsyncMock(side_effect=_first_call_collides())

        result = await create_use_case.execute(sample_command)

        assert result.is_ok()
        assert result.value.invoice_number == "INV-2024-100002"
        assert mock_invoice_repo.create.await_count == 2
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()

    async def test_gives_up_after_max_attempts(
        self, mock_uow, mock_invoice_repo, mock_item_repo, mock_student_repo, sample_command
    ):
        mock_invoice_repo.create = AsyncMock(side_effect=DuplicateInvoiceNumberError("taken"))
        mock_student_repo.get_active_by_id = AsyncMock(return_value=Student(id="student-1", full_name="Ada Obi"))
        use_case = CreateInvoice(
            uow=mock_uow,
            invoice_repo=mock_invoice_repo,
            item_repo=mock_item_repo,
            student_repo=mock_student_repo,
            max_number_attempts=3,
            number_generator=lambda year: f"INV-{year}-111111",
        )

        result = await use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "DUPLICATE_INVOICE_NUMBER"
        assert mock_invoice_repo.create.await_count == 3
        mock_uow.commit.assert_not_awaited()


@pytest.mark.asyncio
class TestCreateInvoiceFailure:

    async def test_unexpected_error_is_wrapped(self, create_use_case, mock_item_repo, mock_uow, sample_command):
        mock_item_repo.create_many = AsyncMock(side_effect=RuntimeError("disk full"))

        result = await create_use_case.execute(sample_command)

        assert result.is_err()
        assert result.error.code == "CREATE_INVOICE_FAILED"
        assert result.error.reason == "disk full"
        mock_uow.rollback.assert_awaited()
        mock_uow.commit.assert_not_awaited()


def _first_call_collides():
    calls = {"n": 0}

    def create(invoice):
        calls["n"] += 1
        if calls["n"] == 1:
            raise DuplicateInvoiceNumberError(f"Invoice number {invoice.invoice_number} is already in use")
        return invoice

    return create
