"""Commission Record Repository Interface

Defines the contract for commission record persistence and the aggregate
queries behind admin and payout reports.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from src.domain.commission_record import CommissionRecord, CommissionStatus


class CommissionTotals(BaseModel):
    count: int
    total_commission: Decimal
    average_commission: Decimal


class StorePayoutRow(BaseModel):
    store_id: str
    status: CommissionStatus
    count: int
    total_amount: Decimal
    commission_amount: Decimal
    store_amount: Decimal


class CommissionRecordRepository(ABC):
    """
    Repository interface for CommissionRecord persistence

    Records are append-only; only status is ever updated (by settlement).
    """

    @abstractmethod
    async def create(self, record: CommissionRecord) -> CommissionRecord:
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[CommissionRecord]:
        pass

    @abstractmethod
    async def get_by_booking_id(self, booking_id: str) -> Optional[CommissionRecord]:
        pass

    @abstractmethod
    async def list_records(
        self,
        store_id: Optional[str] = None,
        status: Optional[CommissionStatus] = None,
        created_since: Optional[datetime] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
    ) -> list[CommissionRecord]:
        """Records newest first, optionally filtered by store, status and age"""
        pass

    @abstractmethod
    async def get_totals(self, since: Optional[datetime] = None) -> CommissionTotals:
        """Count, sum and average of commission_amount (optionally since a date)"""
        pass

    @abstractmethod
    async def get_store_payout_summary(
        self, store_id: Optional[str] = None
    ) -> list[StorePayoutRow]:
        """Sums grouped by store and status"""
        pass
