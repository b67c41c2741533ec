"""Invoice Domain Entity

Tracks a student's bill, its running paid total and its settlement status.
"""

import random
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, String, Date
from bursary.domain.base import BaseModel, generate_uuid, utcnow
from bursary.domain.money import Money, ZERO, to_money

INVOICE_NUMBER_MIN_SUFFIX = 100000
INVOICE_NUMBER_MAX_SUFFIX = 999999


class InvoiceStatus(str, Enum):
    """Invoice settlement status"""
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class Invoice(BaseModel, table=True):
    """
    Invoice - Bill owed by a student

    Domain Rules:
    - invoice_number must be unique (INV-YYYY-NNNNNN, random suffix)
    - total_amount is the sum of the invoice items at creation
    - 0 <= amount_paid <= total_amount
    - amount_paid is the sum of APPROVED payments, status is derived from it
    """

    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="invoice_total_non_negative"),
        CheckConstraint("amount_paid >= 0", name="invoice_paid_non_negative"),
        CheckConstraint("amount_paid <= total_amount", name="invoice_paid_within_total"),
        Index("ix_invoices_student_id", "student_id"),
        Index("ix_invoices_status", "status"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Invoice identifier (uuid)",
    )

    invoice_number: str = Field(
        sa_column=Column(String(32), nullable=False, unique=True),
        description="Unique human-readable number (e.g., INV-2024-483920)",
    )

    student_id: str = Field(
        sa_column=Column(String(36), ForeignKey("students.id"), nullable=False),
        description="Payer (student) the invoice is billed to",
    )

    issue_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date the invoice was issued",
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date payment is due",
    )

    total_amount: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Invoice total (sum of items)",
    )

    amount_paid: Decimal = Field(
        default=ZERO,
        sa_column=Column(Money(), nullable=False, default=0),
        description="Sum of effective (APPROVED) payments",
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.PENDING,
        description="Settlement status derived from amount_paid",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Invoice creation timestamp",
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Last ledger update timestamp",
    )

    @property
    def balance(self) -> Decimal:
        return to_money(self.total_amount) - to_money(self.amount_paid)


def derive_invoice_status(amount_paid: Decimal, total_amount: Decimal) -> InvoiceStatus:
    """
    Derive settlement status from the aggregate paid amount

    Always called with the recomputed sum of effective payments, never with
    the amount of a single payment.
    """
    amount_paid = to_money(amount_paid)
    total_amount = to_money(total_amount)

    if amount_paid <= ZERO:
        return InvoiceStatus.PENDING
    if amount_paid >= total_amount:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


def generate_invoice_number(year: int, rng: Optional[random.Random] = None) -> str:
    """
    Draw a candidate invoice number

    Format: INV-YYYY-NNNNNN. Not guaranteed unique; the unique constraint on
    invoices.invoice_number is the arbiter and callers retry on collision.
    """
    rng = rng or random
    suffix = rng.randint(INVOICE_NUMBER_MIN_SUFFIX, INVOICE_NUMBER_MAX_SUFFIX)
    return f"INV-{year}-{suffix}"
