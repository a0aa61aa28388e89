"""Notification Service Implementations

Alerts go to the application log and, when a webhook URL is configured,
to an HTTP endpoint as JSON.
"""

import logging
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.ledger_entry import LedgerEntry

logger = logging.getLogger(__name__)

RETRY_LIMIT_EVENT = "ledger_retry_limit"
RECONCILIATION_EVENT = "commission_discrepancies"


def retry_limit_payload(entry: LedgerEntry, reason: str) -> Dict[str, Any]:
    return {
        "type": RETRY_LIMIT_EVENT,
        "entry_id": entry.id,
        "transaction_id": entry.transaction_id,
        "store_id": entry.store_id,
        "user_id": entry.user_id,
        "amount": str(entry.amount),
        "currency": entry.currency,
        "status": entry.status.value,
        "retry_count": entry.retry_count,
        "failure_reason": reason,
        "failed_at": entry.failed_at.isoformat() if entry.failed_at else None,
    }


class LoggingNotificationService(NotificationService):
    """Writes alerts to the log at WARNING level"""

    async def send_retry_limit_alert(self, entry: LedgerEntry, reason: str) -> bool:
        logger.warning(
            f"[RETRY LIMIT] entry={entry.id} transaction={entry.transaction_id} "
            f"store={entry.store_id} amount={entry.formatted_amount} "
            f"retries={entry.retry_count} reason={reason}"
        )
        return True

    async def send_reconciliation_alert(self, discrepancies: List[Dict[str, Any]]) -> bool:
        logger.warning(f"[RECONCILIATION] {len(discrepancies)} commission discrepancies")
        for item in discrepancies:
            logger.warning(
                f"[RECONCILIATION] {item.get('kind')} store={item.get('store_id')} "
                f"order={item.get('order_id')} booking={item.get('booking_id')} "
                f"amount={item.get('amount')}"
            )
        return True


class WebhookNotificationService(NotificationService):
    """
    POSTs alerts as JSON to a webhook

    A non-2xx response or a transport error counts as not delivered; the
    error is logged and never raised to the caller.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def _post(self, payload: Dict[str, Any]) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Webhook {payload['type']} alert to {self.webhook_url} failed: {e}")
            return False

        logger.info(f"Webhook {payload['type']} alert delivered to {self.webhook_url}")
        return True

    async def send_retry_limit_alert(self, entry: LedgerEntry, reason: str) -> bool:
        return await self._post(retry_limit_payload(entry, reason))

    async def send_reconciliation_alert(self, discrepancies: List[Dict[str, Any]]) -> bool:
        return await self._post(
            {
                "type": RECONCILIATION_EVENT,
                "count": len(discrepancies),
                "discrepancies": discrepancies,
            }
        )


class CompositeNotificationService(NotificationService):
    """Fans an alert out to several services; delivered if any one succeeds"""

    def __init__(self, services: List[NotificationService]):
        self.services = services

    async def _each(self, send) -> bool:
        delivered = False
        for service in self.services:
            try:
                delivered = await send(service) or delivered
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return delivered

    async def send_retry_limit_alert(self, entry: LedgerEntry, reason: str) -> bool:
        return await self._each(lambda s: s.send_retry_limit_alert(entry, reason))

    async def send_reconciliation_alert(self, discrepancies: List[Dict[str, Any]]) -> bool:
        return await self._each(lambda s: s.send_reconciliation_alert(discrepancies))


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """Logging only, or logging plus webhook when a URL is configured"""
    if not webhook_url:
        return LoggingNotificationService()
    return CompositeNotificationService(
        [LoggingNotificationService(), WebhookNotificationService(webhook_url)]
    )
