"""Payment Repository Interface

Defines the contract for payment persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from bursary.domain.payment import Payment, PaymentStatus


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Payments are the source rows of the ledger aggregate: an invoice's
    amount_paid is always recomputed from get_effective_total().
    """

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: str, for_update: bool = False) -> Optional[Payment]:
        """
        Retrieve payment by ID

        Args:
            payment_id: Payment ID
            for_update: If True, lock the row and refresh any cached instance

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[Payment]:
        pass

    @abstractmethod
    async def mark_verified(
        self,
        payment: Payment,
        status: PaymentStatus,
        verified_by: str,
        verified_at: datetime,
    ) -> Payment:
        """
        Move a PENDING payment to its verified status

        The transition is conditional on the stored row still being PENDING,
        so of two racing verifications only one can apply.

        Raises:
            AlreadyProcessedError: the row had already left PENDING
        """
        pass

    @abstractmethod
    async def get_effective_total(self, invoice_id: str) -> Decimal:
        """
        Sum of APPROVED payment amounts for an invoice

        Reads the current rows inside the caller's transaction, so a payment
        flushed earlier in the same transaction is included.
        """
        pass

    @abstractmethod
    async def count_by_invoice_id(self, invoice_id: str) -> int:
        """Number of payment rows of any status referencing the invoice"""
        pass
