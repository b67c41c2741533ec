"""Request schemas for Billing API

Pydantic models for validating incoming HTTP requests. Item amounts and
descriptions are checked by the use cases so they answer with the stable
INVALID_ITEM_* / EMPTY_ITEMS codes.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from bursary.app.use_cases.billing.dtos import CohortTarget
from bursary.domain.money import MAX_AMOUNT
from bursary.domain.payment import ClaimDecision


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class InvoiceItemRequestSchema(BaseModel):
    description: str = Field(..., description="Fee line description")
    amount: Decimal = Field(..., description="Fee line amount (must be > 0)")


class CreateInvoiceRequestSchema(BaseModel):
    """
    Request schema for creating an invoice

    Used for POST /billing/invoices endpoint.
    """

    student_id: str = Field(..., min_length=1, description="Student (payer) identifier")
    due_date: date = Field(..., description="Payment due date")
    items: List[InvoiceItemRequestSchema] = Field(default_factory=list)
    issue_date: Optional[date] = Field(default=None, description="Defaults to today (UTC)")

    @field_validator("student_id")
    @classmethod
    def validate_student_id(cls, v):
        return _strip_required(v)

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


class CreateCohortInvoicesRequestSchema(BaseModel):
    """
    Request schema for bulk invoice generation

    Used for POST /billing/invoices/bulk endpoint.
    """

    target_type: CohortTarget = Field(..., description="ALL or LEVEL")
    level_id: Optional[str] = Field(default=None, description="Required for LEVEL")
    due_date: date = Field(...)
    items: List[InvoiceItemRequestSchema] = Field(default_factory=list)
    issue_date: Optional[date] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "target_type": "LEVEL",
                "level_id": "grade-7",
                "due_date": "2024-09-30",
                "items": [{"description": "Tuition", "amount": "8000.00"}],
            }
        }


class RecordPaymentRequestSchema(BaseModel):
    """
    Request schema for recording a direct payment

    Used for POST /billing/invoices/{invoice_id}/payments endpoint.
    """

    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, description="Amount paid (must be > 0)")
    payment_date: date = Field(..., description="Date the money moved")
    payment_method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)
    recorded_by: Optional[str] = Field(default=None, max_length=36)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        """Ensure amount is finite and has at most two decimal places"""
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount must have at most 2 decimal places")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "amount": "4000.00",
                "payment_date": "2024-09-10",
                "payment_method": "cash",
                "reference": "RCPT-0042",
            }
        }


class SubmitClaimRequestSchema(BaseModel):
    """
    Request schema for a payer's payment claim

    Used for POST /billing/payments/claims endpoint.
    """

    invoice_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT, description="Claimed amount (must be > 0)")
    payment_date: date = Field(...)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255, description="Bank slip reference")
    submitted_by: Optional[str] = Field(default=None, max_length=36)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        if v.as_tuple().exponent < -2:
            raise ValueError("Amount must have at most 2 decimal places")
        return v


class VerifyClaimRequestSchema(BaseModel):
    """
    Request schema for approving or rejecting a claim

    Used for POST /billing/payments/{payment_id}/verify endpoint.
    """

    decision: ClaimDecision = Field(..., description="APPROVE or REJECT")
    actor_id: str = Field(..., min_length=1, max_length=36, description="Verifying administrator")

    @field_validator("actor_id")
    @classmethod
    def validate_actor_id(cls, v):
        return _strip_required(v)
