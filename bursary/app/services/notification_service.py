"""Notification Service Interface

Defines the contract for alerting operators about ledger discrepancies.
"""

from abc import ABC, abstractmethod
from bursary.app.use_cases.billing.dtos import ReconciliationResultDTO


class NotificationService(ABC):
    """
    Abstract notification service for sending alerts

    Implementations can send notifications via:
    - Log output
    - Webhook (HTTP POST)
    """

    @abstractmethod
    async def send_discrepancy_alert(self, result: ReconciliationResultDTO) -> bool:
        """
        Send alert for a reconciliation run that found discrepancies

        Args:
            result: ReconciliationResultDTO with the discrepancies

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
