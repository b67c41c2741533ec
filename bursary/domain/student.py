"""Student Domain Entity

The payer an invoice is billed to. Owned by the school administration
application; the ledger only reads it.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, DateTime
from bursary.domain.base import BaseModel, generate_uuid, utcnow


class Student(BaseModel, table=True):
    """
    Student - Payer of school invoices

    Domain Rules:
    - A student is active while deleted_at is NULL
    - level_id groups students into an academic level (cohort targeting)
    """

    __tablename__ = "students"
    __table_args__ = (
        Index("ix_students_level_id", "level_id"),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Student identifier (uuid)",
    )

    full_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Display name",
    )

    level_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="Academic level the student is enrolled in",
    )

    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Soft-delete timestamp (NULL = active)",
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        description="Record creation timestamp",
    )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None
