"""ReconcileInvoiceLedger Use Case

Audits every invoice's stored paid total and status against its payment rows.
"""

import logging
import time
from typing import List
from libs.result import Result, Return, Error
from bursary.app.repositories.invoice_repository import InvoiceRepository
from bursary.app.repositories.payment_repository import PaymentRepository
from bursary.domain.base import utcnow
from bursary.domain.invoice import derive_invoice_status
from bursary.domain.money import to_money
from .dtos import InvoiceDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileInvoiceLedger:
    """
    Use Case: Reconcile invoice aggregates against payments

    Business Rules:
    1. Checks every invoice
    2. calculated_amount_paid = sum of APPROVED payments
    3. An invoice is a discrepancy when amount_paid != calculated_amount_paid
       or status != status derived from amount_paid/total_amount
    4. Does NOT modify any data (read-only audit)

    Flow:
    1. Get all invoices
    2. For each invoice:
       a. Sum its approved payments
       b. Compare stored amount_paid and status
       c. If mismatch, record discrepancy
    3. Return reconciliation result with all discrepancies
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute ledger reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = utcnow()

        try:
            logger.info("Starting invoice ledger reconciliation")

            # Step 1: Get all invoices
            invoices = await self.invoice_repo.get_all()
            total_invoices = len(invoices)

            logger.info(f"Found {total_invoices} invoices to reconcile")

            # Step 2: Check each invoice
            discrepancies: List[InvoiceDiscrepancyDTO] = []

            for invoice in invoices:
                calculated = await self.payment_repo.get_effective_total(invoice.id)
                stored = to_money(invoice.amount_paid)
                derived_status = derive_invoice_status(stored, to_money(invoice.total_amount))

                if stored == calculated and invoice.status == derived_status:
                    continue

                discrepancy = InvoiceDiscrepancyDTO(
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    stored_amount_paid=stored,
                    calculated_amount_paid=calculated,
                    difference=stored - calculated,
                    stored_status=invoice.status.value,
                    derived_status=derived_status.value,
                )
                discrepancies.append(discrepancy)

                logger.warning(
                    f"Discrepancy found on invoice {invoice.invoice_number} "
                    f"(invoice_id={invoice.id}): "
                    f"amount_paid={stored}, payment_sum={calculated}, "
                    f"status={invoice.status.value}, expected_status={derived_status.value}"
                )

            # Step 3: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_invoices_checked=total_invoices,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_invoices} invoices in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_invoices} invoices balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Invoice ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile invoice ledger",
                    reason=str(e),
                )
            )
