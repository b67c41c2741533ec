"""Invoice Item Repository Interface

Defines the contract for invoice item persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List
from bursary.domain.invoice_item import InvoiceItem


class InvoiceItemRepository(ABC):
    """Repository interface for InvoiceItem persistence"""

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceItem]:
        pass

    @abstractmethod
    async def create_many(self, items: List[InvoiceItem]) -> List[InvoiceItem]:
        """
        Persist all items of one invoice

        Must run in the same transaction as the invoice insert.
        """
        pass
