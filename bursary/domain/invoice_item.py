"""Invoice Item Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, String
from bursary.domain.base import BaseModel, generate_uuid, utcnow
from bursary.domain.money import Money


class InvoiceItem(BaseModel, table=True):
    """
    Invoice Item - Fee line within an invoice (e.g., "Tuition", "Bus fee")

    Domain Rules:
    - Each item belongs to exactly one invoice
    - amount > 0
    - Immutable once the invoice is created
    """

    __tablename__ = "invoice_items"
    __table_args__ = (
        CheckConstraint("amount > 0", name="invoice_item_amount_positive"),
        Index("ix_invoice_items_invoice_id", "invoice_id"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Item identifier (uuid)",
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice",
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description",
    )

    amount: Decimal = Field(
        sa_column=Column(Money(), nullable=False),
        description="Line item amount",
    )

    position: int = Field(
        default=0,
        description="Order of the item on the invoice",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Line item creation timestamp",
    )
