"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
Command DTOs are deliberately lax: business validation (positive amounts,
non-empty items) happens in the use cases so every caller gets the same
stable error codes.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field
from bursary.domain.payment import ClaimDecision


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class InvoiceItemInputDTO(BaseModel):
    """One fee line of an invoice to create"""

    description: str = Field(..., description="Line item description")
    amount: Decimal = Field(..., description="Line item amount (must be > 0)")


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating a single invoice

    Used as input to CreateInvoice use case.
    """

    student_id: str = Field(..., description="Student (payer) identifier")
    due_date: date = Field(..., description="Payment due date")
    items: List[InvoiceItemInputDTO] = Field(
        default_factory=list,
        description="Fee lines; total_amount is their sum",
    )
    issue_date: Optional[date] = Field(
        default=None,
        description="Issue date (defaults to today, UTC)",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "student_id": "5f0c8c1e-7d8b-4a8e-9a55-0b1f7c3d2e11",
                "due_date": "2024-09-30",
                "items": [
                    {"description": "Tuition", "amount": "8000.00"},
                    {"description": "Bus fee", "amount": "2000.00"},
                ],
            }
        }


class CohortTarget(str, Enum):
    """Which students a bulk invoice run targets"""
    ALL = "ALL"        # every active student
    LEVEL = "LEVEL"    # active students in one academic level


class CreateCohortInvoicesCommandDTO(BaseModel):
    """
    Command DTO for bulk invoice generation

    Used as input to CreateCohortInvoices use case.
    """

    target_type: CohortTarget = Field(..., description="Cohort selector")
    level_id: Optional[str] = Field(
        default=None,
        description="Academic level (required when target_type=LEVEL)",
    )
    due_date: date = Field(..., description="Payment due date")
    items: List[InvoiceItemInputDTO] = Field(default_factory=list)
    issue_date: Optional[date] = Field(default=None)


class RecordPaymentCommandDTO(BaseModel):
    """
    Command DTO for a trusted (direct) payment

    Used as input to RecordPayment use case.
    """

    invoice_id: str = Field(..., description="Invoice identifier")
    amount: Decimal = Field(..., description="Amount paid (must be > 0)")
    payment_date: date = Field(..., description="Date the money moved")
    payment_method: Optional[str] = Field(default=None, description="e.g. cash, bank_transfer")
    reference: Optional[str] = Field(default=None, description="External reference")
    recorded_by: Optional[str] = Field(default=None, description="Recording actor")


class SubmitClaimCommandDTO(BaseModel):
    """
    Command DTO for a payer-submitted payment claim

    Used as input to SubmitPaymentClaim use case.
    """

    invoice_id: str = Field(..., description="Invoice identifier")
    amount: Decimal = Field(..., description="Claimed amount (must be > 0)")
    payment_date: date = Field(..., description="Date the payer says they paid")
    payment_method: Optional[str] = Field(default=None)
    reference: Optional[str] = Field(default=None, description="Bank slip / teller reference")
    submitted_by: Optional[str] = Field(default=None, description="Submitting user")


class VerifyClaimCommandDTO(BaseModel):
    """
    Command DTO for an administrator's claim decision

    The caller is expected to be authorized already; actor_id is recorded.
    """

    payment_id: str = Field(..., description="Claimed payment identifier")
    decision: ClaimDecision = Field(..., description="APPROVE or REJECT")
    actor_id: str = Field(..., description="Verifying administrator")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class InvoiceItemDTO(BaseModel):
    item_id: str
    description: str
    amount: Decimal


class InvoiceSummaryDTO(BaseModel):
    """
    Invoice header with its ledger aggregate

    balance = total_amount - amount_paid
    """

    invoice_id: str = Field(..., description="Invoice identifier")
    invoice_number: str = Field(..., description="Human-readable invoice number")
    student_id: str = Field(..., description="Payer")
    issue_date: date
    due_date: date
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: str = Field(..., description="PENDING, PARTIALLY_PAID or PAID")

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": "0b8e7e1a-3c1d-4c8e-b9f1-5a8e2f9d1c44",
                "invoice_number": "INV-2024-483920",
                "student_id": "5f0c8c1e-7d8b-4a8e-9a55-0b1f7c3d2e11",
                "issue_date": "2024-09-01",
                "due_date": "2024-09-30",
                "total_amount": "10000.00",
                "amount_paid": "4000.00",
                "balance": "6000.00",
                "status": "PARTIALLY_PAID",
            }
        }


class InvoiceResponseDTO(InvoiceSummaryDTO):
    """Response DTO for invoice creation"""

    items: List[InvoiceItemDTO] = Field(default_factory=list)
    created_at: datetime


class PaymentDTO(BaseModel):
    payment_id: str
    invoice_id: str
    amount: Decimal
    payment_date: date
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    status: str
    recorded_by: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: datetime


class InvoiceDetailDTO(InvoiceResponseDTO):
    """Invoice with its items and every payment row (any status)"""

    payments: List[PaymentDTO] = Field(default_factory=list)


class PaymentResponseDTO(BaseModel):
    """
    Response DTO for payment recording and claim submission

    invoice reflects the ledger after the operation.
    """

    payment: PaymentDTO
    invoice: InvoiceSummaryDTO


class ClaimVerificationResponseDTO(BaseModel):
    """Response DTO for claim verification"""

    decision: str
    payment: PaymentDTO
    invoice: InvoiceSummaryDTO


class BulkInvoiceFailureDTO(BaseModel):
    student_id: str
    code: str
    message: str


class CohortInvoicesResponseDTO(BaseModel):
    """
    Response DTO for bulk invoice generation

    Each invoice is committed independently; count is the number created.
    """

    requested: int = Field(..., description="Students resolved from the selector")
    count: int = Field(..., description="Invoices created")
    failed_count: int = Field(..., description="Students whose invoice failed")
    invoices: List[InvoiceSummaryDTO] = Field(default_factory=list)
    failures: List[BulkInvoiceFailureDTO] = Field(default_factory=list)


class StudentBalanceResponseDTO(BaseModel):
    """Response DTO for a student's outstanding balance"""

    student_id: str
    invoice_count: int
    total_billed: Decimal
    total_paid: Decimal
    outstanding: Decimal


class OutstandingSummaryResponseDTO(BaseModel):
    students: List[StudentBalanceResponseDTO] = Field(default_factory=list)
    student_count: int
    total_outstanding: Decimal


class StudentInvoicesResponseDTO(BaseModel):
    student_id: str
    invoices: List[InvoiceDetailDTO] = Field(default_factory=list)


class InvoiceDiscrepancyDTO(BaseModel):
    """
    Ledger discrepancy for one invoice

    difference = stored_amount_paid - calculated_amount_paid
    """

    invoice_id: str
    invoice_number: str
    stored_amount_paid: Decimal
    calculated_amount_paid: Decimal
    difference: Decimal
    stored_status: str
    derived_status: str


class ReconciliationResultDTO(BaseModel):
    """Result of a ledger reconciliation run"""

    total_invoices_checked: int
    discrepancies_found: int
    discrepancies: List[InvoiceDiscrepancyDTO] = Field(default_factory=list)
    reconciliation_time: datetime
    execution_time_ms: int
