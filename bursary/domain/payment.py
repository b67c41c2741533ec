"""Payment Domain Entity

A single money movement recorded against one invoice, either directly
(immediately effective) or as a payer claim awaiting verification.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, String, Date, DateTime
from bursary.domain.base import BaseModel, generate_uuid, utcnow
from bursary.domain.money import Money


class PaymentStatus(str, Enum):
    """Payment verification status"""
    PENDING = "PENDING"      # Claim submitted, awaiting verification
    APPROVED = "APPROVED"    # Effective: counts towards invoice amount_paid
    REJECTED = "REJECTED"    # Terminal, never counted


class ClaimDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


class Payment(BaseModel, table=True):
    """
    Payment - Money recorded against an invoice

    Domain Rules:
    - amount_paid > 0
    - Only APPROVED payments contribute to the invoice's amount_paid
    - PENDING -> APPROVED | REJECTED happens exactly once
    - Direct (trusted) payments are stored APPROVED immediately
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount_paid > 0", name="payment_amount_positive"),
        Index("ix_payments_invoice_id", "invoice_id"),
        Index("ix_payments_status", "status"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Payment identifier (uuid)",
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id"), nullable=False),
        description="Invoice the payment applies to",
    )

    amount_paid: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Amount paid",
    )

    payment_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date the money moved",
    )

    payment_method: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Payment method (e.g., 'cash', 'bank_transfer')",
    )

    reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="External reference (bank slip, teller number)",
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.APPROVED,
        description="Verification status",
    )

    recorded_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Actor that recorded or claimed the payment",
    )

    verified_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Administrator that approved or rejected the claim",
    )

    verified_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Timestamp of the verification decision",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Record creation timestamp",
    )

    @property
    def is_effective(self) -> bool:
        return self.status == PaymentStatus.APPROVED
