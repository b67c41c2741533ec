"""Notification Service Implementations

Discrepancy alerts to the log and, when configured, to an HTTP webhook.
"""

import logging
from typing import List, Optional
import httpx
from bursary.app.services.notification_service import NotificationService
from bursary.app.use_cases.billing.dtos import ReconciliationResultDTO

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs alerts

    Always configured, so discrepancies are visible even without a webhook.
    """

    async def send_discrepancy_alert(self, result: ReconciliationResultDTO) -> bool:
        logger.error(
            f"[LEDGER ALERT] {result.discrepancies_found} of "
            f"{result.total_invoices_checked} invoices out of balance "
            f"(run at {result.reconciliation_time.isoformat()})"
        )
        for d in result.discrepancies:
            logger.error(
                f"  - Invoice {d.invoice_number} ({d.invoice_id}): "
                f"amount_paid={d.stored_amount_paid}, payment_sum={d.calculated_amount_paid}, "
                f"diff={d.difference}, status={d.stored_status}, expected={d.derived_status}"
            )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends alerts via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST alerts to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def _payload(self, result: ReconciliationResultDTO) -> dict:
        return {
            "type": "ledger_discrepancy_alert",
            "reconciliation_time": result.reconciliation_time.isoformat(),
            "total_invoices_checked": result.total_invoices_checked,
            "discrepancies_found": result.discrepancies_found,
            "discrepancies": [
                {
                    "invoice_id": d.invoice_id,
                    "invoice_number": d.invoice_number,
                    "stored_amount_paid": str(d.stored_amount_paid),
                    "calculated_amount_paid": str(d.calculated_amount_paid),
                    "difference": str(d.difference),
                    "stored_status": d.stored_status,
                    "derived_status": d.derived_status,
                }
                for d in result.discrepancies
            ],
        }

    async def send_discrepancy_alert(self, result: ReconciliationResultDTO) -> bool:
        """
        Send discrepancy alert via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=self._payload(result),
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for {result.discrepancies_found} "
                    f"discrepancies to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send discrepancy webhook to {self.webhook_url}: {e}")
            return False


class CompositeNotificationService(NotificationService):
    """Delegates to several channels; succeeds if any channel does"""

    def __init__(self, services: List[NotificationService]):
        self.services = services

    async def send_discrepancy_alert(self, result: ReconciliationResultDTO) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_discrepancy_alert(result):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Factory function to create appropriate notification service

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     service with logging + webhook. Otherwise, just logging.

    Returns:
        Configured NotificationService
    """
    services: List[NotificationService] = [LoggingNotificationService()]

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
