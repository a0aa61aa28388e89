"""Ledger Entry Repository Interface

Defines the contract for ledger entry persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from src.domain.ledger_entry import LedgerEntry, EntryStatus, EntryType


class LedgerEntryFilter(BaseModel):
    """Equality filters for find(); None means "any"."""

    status: Optional[EntryStatus] = None
    type: Optional[EntryType] = None
    user_id: Optional[str] = None
    store_id: Optional[str] = None
    order_id: Optional[str] = None
    booking_id: Optional[str] = None


class StatusTotal(BaseModel):
    count: int
    total_amount: Decimal


class LedgerEntryRepository(ABC):
    """
    Repository interface for LedgerEntry persistence

    transaction_id is unique. Writes after creation go through save(), which
    rejects a write based on a stale version.
    """

    @abstractmethod
    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Persist a new ledger entry

        Assigns expires_at (24h for payments, 72h otherwise) when absent.

        Raises:
            DuplicateTransactionId: transaction_id already exists
        """
        pass

    @abstractmethod
    async def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        pass

    @abstractmethod
    async def get_by_transaction_id(self, transaction_id: str) -> Optional[LedgerEntry]:
        pass

    @abstractmethod
    async def find(
        self,
        filters: Optional[LedgerEntryFilter] = None,
        newest_first: bool = True,
        limit: Optional[int] = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """
        Find entries matching all given filters

        Sorted by created_at, newest first unless ``newest_first`` is False.
        """
        pass

    @abstractmethod
    async def count(self, filters: Optional[LedgerEntryFilter] = None) -> int:
        pass

    @abstractmethod
    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Write the whole entry back and bump its version

        Raises:
            StaleWrite: the stored row was changed since the entry was loaded
        """
        pass

    @abstractmethod
    async def get_status_counts(self) -> dict[EntryStatus, StatusTotal]:
        """Count and amount sum per status, for statuses that have entries"""
        pass

    @abstractmethod
    async def get_recent_failures(
        self, window_hours: int = 24, now: Optional[datetime] = None
    ) -> list[LedgerEntry]:
        """Failed entries updated within the trailing window, newest first"""
        pass

    @abstractmethod
    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        """
        Evict entries whose expires_at has passed

        Storage-level TTL; returns the number of deleted entries.
        """
        pass
