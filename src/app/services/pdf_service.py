"""PDF Generation Service Interface

Defines the contract for PDF generation operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from src.app.repositories.commission_record_repository import StorePayoutRow
from src.domain.commission_record import CommissionRecord


class PdfService(ABC):
    """
    Service interface for PDF generation

    Provides PDF generation capabilities for store payout statements.
    """

    @abstractmethod
    def generate_payout_statement(
        self,
        store_id: str,
        records: List[CommissionRecord],
        summary: List[StorePayoutRow],
        generated_at: datetime,
        platform_name: str = "AIO Marketplace",
        platform_address: str = "Colombo, Sri Lanka",
    ) -> bytes:
        """
        Generate a payout statement PDF for one store

        Args:
            store_id: Store the statement is for
            records: Commission records of the store, newest first
            summary: Per-status totals for the store
            generated_at: Statement timestamp
            platform_name: Name printed in the header
            platform_address: Address printed in the header

        Returns:
            PDF document as bytes
        """
        pass
