"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List
from bursary.domain.invoice import Invoice


class StudentOutstanding:
    """Aggregate row: one student's billed/paid totals"""

    __slots__ = ("student_id", "invoice_count", "total_billed", "total_paid")

    def __init__(self, student_id: str, invoice_count: int, total_billed: Decimal, total_paid: Decimal):
        self.student_id = student_id
        self.invoice_count = invoice_count
        self.total_billed = total_billed
        self.total_paid = total_paid

    @property
    def outstanding(self) -> Decimal:
        return self.total_billed - self.total_paid


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Provides access to invoice data for billing and reconciliation.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice

        Raises:
            DuplicateInvoiceNumberError: invoice_number already taken
            ConstraintViolationError: any other constraint failure
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID
            for_update: If True, lock the row (SELECT FOR UPDATE) until the
                        transaction ends

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_student_id(self, student_id: str) -> List[Invoice]:
        """Retrieve a student's invoices, newest first"""
        pass

    @abstractmethod
    async def get_all(self) -> List[Invoice]:
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        pass

    @abstractmethod
    async def delete(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    async def get_student_totals(self, student_id: str) -> StudentOutstanding:
        """
        Sum billed and paid amounts over a student's invoices

        Uses the invoices' authoritative amount_paid, never raw payment rows.
        """
        pass

    @abstractmethod
    async def get_outstanding_by_student(self) -> List[StudentOutstanding]:
        """Per-student totals for every student with a non-zero balance"""
        pass
