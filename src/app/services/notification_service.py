"""Notification Service Interface

Operator alerts raised by the ledger: an entry that keeps failing after its
retries are used up, and commission records that do not match the ledger.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List
from src.domain.ledger_entry import LedgerEntry


class NotificationService(ABC):
    @abstractmethod
    async def send_retry_limit_alert(self, entry: LedgerEntry, reason: str) -> bool:
        """
        Alert that an entry failed again after exhausting its retries

        Args:
            entry: The failed LedgerEntry
            reason: Failure reason of the latest attempt

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass

    @abstractmethod
    async def send_reconciliation_alert(self, discrepancies: List[Dict[str, Any]]) -> bool:
        """Alert about commission discrepancies left unrepaired by reconciliation"""
        pass
