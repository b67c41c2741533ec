"""Integration tests for bulk invoicing, concurrent payments and reconciliation

Tests cover:
- Cohort invoicing by level and for all active students
- Invoice number collisions during a cohort run
- Concurrent payments on one invoice from separate sessions
- Concurrent claim verification, and deletion racing a claim
- Reconciliation detecting a manually drifted invoice
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import update

from bursary.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from bursary.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from bursary.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from bursary.adapter.repositories.student_repository import SqlAlchemyStudentRepository
from bursary.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from bursary.app.use_cases.billing import (
    CohortTarget,
    CreateCohortInvoices,
    CreateCohortInvoicesCommandDTO,
    InvoiceItemInputDTO,
    DeleteInvoice,
    RecordPayment,
    RecordPaymentCommandDTO,
    ReconcileInvoiceLedger,
    SubmitClaimCommandDTO,
    SubmitPaymentClaim,
    VerifyClaimCommandDTO,
    VerifyPaymentClaim,
)
from bursary.domain.invoice import Invoice, InvoiceStatus
from bursary.domain.payment import ClaimDecision, PaymentStatus

TAKEN_NUMBER = "INV-2024-999999"


def number_sequence(*numbers):
    """Number generator returning the given numbers in order"""
    remaining = iter(numbers)

    def generate(year: int) -> str:
        return next(remaining)

    return generate


def cohort_use_case(uow, session, number_generator=None, max_number_attempts=5) -> CreateCohortInvoices:
    return CreateCohortInvoices(
        uow=uow,
        invoice_repo=SqlAlchemyInvoiceRepository(session),
        item_repo=SqlAlchemyInvoiceItemRepository(session),
        student_repo=SqlAlchemyStudentRepository(session),
        max_number_attempts=max_number_attempts,
        number_generator=number_generator,
    )


def grade_7_command() -> CreateCohortInvoicesCommandDTO:
    return CreateCohortInvoicesCommandDTO(
        target_type=CohortTarget.LEVEL,
        level_id="grade-7",
        issue_date=date(2024, 9, 1),
        due_date=date(2024, 9, 30),
        items=[InvoiceItemInputDTO(description="Tuition", amount=Decimal("8000.00"))],
    )


async def seed_taken_invoice(session):
    session.add(
        Invoice(
            invoice_number=TAKEN_NUMBER,
            student_id="stu-dan",
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
            total_amount=Decimal("100.00"),
        )
    )
    await session.commit()


@pytest.mark.asyncio
class TestCohortInvoicesIntegration:

    async def test_level_cohort_skips_other_levels_and_withdrawn_students(self, uow, db_session, students):
        result = await cohort_use_case(uow, db_session).execute(grade_7_command())

        assert result.is_ok()
        assert result.value.requested == 3
        assert result.value.count == 3
        assert {inv.student_id for inv in result.value.invoices} == {"stu-ada", "stu-ben", "stu-chi"}
        assert all(inv.total_amount == Decimal("8000.00") for inv in result.value.invoices)
        assert len({inv.invoice_number for inv in result.value.invoices}) == 3

    async def test_all_cohort(self, uow, db_session, students):
        command = grade_7_command()
        command.target_type = CohortTarget.ALL
        command.level_id = None

        result = await cohort_use_case(uow, db_session).execute(command)

        assert result.is_ok()
        assert result.value.count == 4

    async def test_single_collision_is_retried(self, uow, db_session, students):
        """
        Given: INV-2024-999999 already exists
        When: The first draw for a cohort of 3 collides with it
        Then: A fresh number is drawn and all 3 invoices are created
        """
        await seed_taken_invoice(db_session)
        generator = number_sequence(TAKEN_NUMBER, "INV-2024-100001", "INV-2024-100002", "INV-2024-100003")

        result = await cohort_use_case(uow, db_session, number_generator=generator).execute(grade_7_command())

        assert result.is_ok()
        assert result.value.count == 3
        assert result.value.failed_count == 0
        assert sorted(inv.invoice_number for inv in result.value.invoices) == [
            "INV-2024-100001",
            "INV-2024-100002",
            "INV-2024-100003",
        ]

    async def test_persistent_collision_fails_only_that_student(self, uow, db_session, students):
        """
        Given: Every draw for the second student collides
        Then: The other two invoices are still committed and the failure is reported
        """
        await seed_taken_invoice(db_session)
        generator = number_sequence(
            "INV-2024-100001",
            TAKEN_NUMBER, TAKEN_NUMBER, TAKEN_NUMBER,
            "INV-2024-100003",
        )

        result = await cohort_use_case(
            uow, db_session, number_generator=generator, max_number_attempts=3
        ).execute(grade_7_command())

        assert result.is_ok()
        assert result.value.requested == 3
        assert result.value.count == 2
        assert result.value.failed_count == 1
        assert result.value.failures[0].student_id == "stu-ben"
        assert result.value.failures[0].code == "DUPLICATE_INVOICE_NUMBER"
        assert await SqlAlchemyInvoiceRepository(db_session).get_by_student_id("stu-ben") == []

    async def test_level_without_students(self, uow, db_session, students):
        command = grade_7_command()
        command.level_id = "grade-12"

        result = await cohort_use_case(uow, db_session).execute(command)

        assert result.is_err()
        assert result.error.code == "NO_RECIPIENTS"


async def grade_8_invoice(uow, db_session) -> str:
    """Invoice of 10000 for the single grade-8 student"""
    result = await cohort_use_case(uow, db_session).execute(
        CreateCohortInvoicesCommandDTO(
            target_type=CohortTarget.LEVEL,
            level_id="grade-8",
            issue_date=date(2024, 9, 1),
            due_date=date(2024, 9, 30),
            items=[InvoiceItemInputDTO(description="Tuition", amount=Decimal("10000.00"))],
        )
    )
    return result.value.invoices[0].invoice_id


def session_uow(session) -> SqlAlchemyUnitOfWork:
    return SqlAlchemyUnitOfWork(session, max_attempts=10, retry_backoff_seconds=0.01)


async def pay_in_own_session(session_factory, invoice_id: str, amount: str):
    async with session_factory() as session:
        use_case = RecordPayment(
            uow=session_uow(session),
            invoice_repo=SqlAlchemyInvoiceRepository(session),
            payment_repo=SqlAlchemyPaymentRepository(session),
        )
        return await use_case.execute(
            RecordPaymentCommandDTO(
                invoice_id=invoice_id,
                amount=Decimal(amount),
                payment_date=date(2024, 9, 10),
            )
        )


@pytest.mark.asyncio
class TestConcurrentPaymentsIntegration:

    async def test_concurrent_payments_are_both_applied(self, uow, db_session, session_factory, students):
        """
        Given: Invoice of 10000
        When: 3000 and 2500 are recorded at the same time from two sessions
        Then: amount_paid is 5500, never just one of them
        """
        invoice_id = await grade_8_invoice(uow, db_session)

        results = await asyncio.gather(
            pay_in_own_session(session_factory, invoice_id, "3000.00"),
            pay_in_own_session(session_factory, invoice_id, "2500.00"),
        )

        assert all(r.is_ok() for r in results)
        async with session_factory() as session:
            invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
            assert invoice.amount_paid == Decimal("5500.00")
            assert invoice.status == InvoiceStatus.PARTIALLY_PAID
            assert await SqlAlchemyPaymentRepository(session).get_effective_total(invoice_id) == Decimal("5500.00")

    async def test_concurrent_overpayment_admits_only_one(self, uow, db_session, session_factory, students):
        invoice_id = await grade_8_invoice(uow, db_session)

        results = await asyncio.gather(
            pay_in_own_session(session_factory, invoice_id, "6000.00"),
            pay_in_own_session(session_factory, invoice_id, "6000.00"),
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert [r.error.code for r in results if r.is_err()] == ["OVERPAYMENT"]
        async with session_factory() as session:
            invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
            assert invoice.amount_paid == Decimal("6000.00")


@pytest.mark.asyncio
class TestConcurrentClaimsIntegration:
    """Each operation runs in its own session, as two API requests would"""

    async def _claim(self, session_factory, invoice_id: str, amount: str):
        async with session_factory() as session:
            return await SubmitPaymentClaim(
                uow=session_uow(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute(
                SubmitClaimCommandDTO(
                    invoice_id=invoice_id,
                    amount=Decimal(amount),
                    payment_date=date(2024, 9, 12),
                    submitted_by="parent-1",
                )
            )

    async def _verify(self, session_factory, payment_id: str, decision: ClaimDecision, actor_id: str):
        async with session_factory() as session:
            return await VerifyPaymentClaim(
                uow=session_uow(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute(VerifyClaimCommandDTO(payment_id=payment_id, decision=decision, actor_id=actor_id))

    async def _delete(self, session_factory, invoice_id: str):
        async with session_factory() as session:
            return await DeleteInvoice(
                uow=session_uow(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute(invoice_id)

    async def _pending_claim(self, uow, db_session, session_factory, amount: str = "4000.00"):
        invoice_id = await grade_8_invoice(uow, db_session)
        claim = await self._claim(session_factory, invoice_id, amount)
        assert claim.is_ok()
        return invoice_id, claim.value.payment.payment_id

    async def _stored(self, session_factory, invoice_id: str, payment_id: str):
        async with session_factory() as session:
            invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
            payment_repo = SqlAlchemyPaymentRepository(session)
            payment = await payment_repo.get_by_id(payment_id)
            effective = await payment_repo.get_effective_total(invoice_id)
            return invoice, payment, effective

    async def test_double_approval_applies_once(self, uow, db_session, session_factory, students):
        """
        Given: A pending claim of 4000 on an invoice of 10000
        When: Two administrators approve it at the same time
        Then: One approval succeeds, the other is ALREADY_PROCESSED, 4000 is counted once
        """
        invoice_id, payment_id = await self._pending_claim(uow, db_session, session_factory)

        results = await asyncio.gather(
            self._verify(session_factory, payment_id, ClaimDecision.APPROVE, "admin-1"),
            self._verify(session_factory, payment_id, ClaimDecision.APPROVE, "admin-2"),
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert [r.error.code for r in results if r.is_err()] == ["ALREADY_PROCESSED"]
        invoice, payment, effective = await self._stored(session_factory, invoice_id, payment_id)
        assert payment.status == PaymentStatus.APPROVED
        assert invoice.amount_paid == Decimal("4000.00")
        assert effective == Decimal("4000.00")

    async def test_approve_racing_reject_leaves_consistent_ledger(self, uow, db_session, session_factory, students):
        invoice_id, payment_id = await self._pending_claim(uow, db_session, session_factory)

        results = await asyncio.gather(
            self._verify(session_factory, payment_id, ClaimDecision.APPROVE, "admin-1"),
            self._verify(session_factory, payment_id, ClaimDecision.REJECT, "admin-2"),
        )

        winners = [r.value for r in results if r.is_ok()]
        assert len(winners) == 1
        assert [r.error.code for r in results if r.is_err()] == ["ALREADY_PROCESSED"]

        invoice, payment, effective = await self._stored(session_factory, invoice_id, payment_id)
        assert payment.status.value == winners[0].payment.status
        expected_paid = Decimal("4000.00") if payment.status == PaymentStatus.APPROVED else Decimal("0.00")
        assert invoice.amount_paid == expected_paid
        assert effective == expected_paid

    async def test_approval_racing_direct_payment_never_overpays(self, uow, db_session, session_factory, students):
        """
        Given: Invoice of 10000 with a pending claim of 6000
        When: The claim is approved while a direct payment of 6000 is recorded
        Then: Exactly one of them lands, the other is OVERPAYMENT
        """
        invoice_id, payment_id = await self._pending_claim(uow, db_session, session_factory, "6000.00")

        results = await asyncio.gather(
            self._verify(session_factory, payment_id, ClaimDecision.APPROVE, "admin-1"),
            pay_in_own_session(session_factory, invoice_id, "6000.00"),
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert [r.error.code for r in results if r.is_err()] == ["OVERPAYMENT"]
        invoice, _, effective = await self._stored(session_factory, invoice_id, payment_id)
        assert invoice.amount_paid == Decimal("6000.00")
        assert effective == invoice.amount_paid
        assert invoice.amount_paid <= invoice.total_amount

    async def test_delete_racing_claim_never_orphans_payment(self, uow, db_session, session_factory, students):
        invoice_id = await grade_8_invoice(uow, db_session)

        deleted, claim = await asyncio.gather(
            self._delete(session_factory, invoice_id),
            self._claim(session_factory, invoice_id, "1000.00"),
        )

        async with session_factory() as session:
            invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
            payment_count = await SqlAlchemyPaymentRepository(session).count_by_invoice_id(invoice_id)

        if deleted.is_ok():
            assert claim.is_err()
            assert claim.error.code == "INVOICE_NOT_FOUND"
            assert invoice is None
            assert payment_count == 0
        else:
            assert deleted.error.code == "INVOICE_HAS_PAYMENTS"
            assert claim.is_ok()
            assert invoice is not None
            assert payment_count == 1


@pytest.mark.asyncio
class TestReconciliationIntegration:

    async def test_detects_manual_drift(self, uow, db_session, session_factory, students):
        result = await cohort_use_case(uow, db_session).execute(grade_7_command())
        drifted = result.value.invoices[0]
        await db_session.execute(
            update(Invoice)
            .where(Invoice.id == drifted.invoice_id)
            .values(amount_paid=Decimal("500.00"))
        )
        await db_session.commit()

        async with session_factory() as session:
            reconciliation = await ReconcileInvoiceLedger(
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute()

        assert reconciliation.is_ok()
        assert reconciliation.value.total_invoices_checked == 3
        assert reconciliation.value.discrepancies_found == 1
        discrepancy = reconciliation.value.discrepancies[0]
        assert discrepancy.invoice_id == drifted.invoice_id
        assert discrepancy.stored_amount_paid == Decimal("500.00")
        assert discrepancy.calculated_amount_paid == Decimal("0.00")
        assert discrepancy.difference == Decimal("500.00")
        assert discrepancy.stored_status == "PENDING"
        assert discrepancy.derived_status == "PARTIALLY_PAID"

    async def test_clean_ledger(self, uow, db_session, session_factory, students):
        result = await cohort_use_case(uow, db_session).execute(grade_7_command())
        await RecordPayment(
            uow=uow,
            invoice_repo=SqlAlchemyInvoiceRepository(db_session),
            payment_repo=SqlAlchemyPaymentRepository(db_session),
        ).execute(
            RecordPaymentCommandDTO(
                invoice_id=result.value.invoices[0].invoice_id,
                amount=Decimal("8000.00"),
                payment_date=date(2024, 9, 10),
            )
        )

        async with session_factory() as session:
            reconciliation = await ReconcileInvoiceLedger(
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                payment_repo=SqlAlchemyPaymentRepository(session),
            ).execute()

        assert reconciliation.is_ok()
        assert reconciliation.value.discrepancies_found == 0
