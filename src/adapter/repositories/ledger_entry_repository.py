"""SQLAlchemy implementation of LedgerEntryRepository

Provides persistence for LedgerEntry entities. Uniqueness of transaction_id
is enforced by a unique index; concurrent writers are detected through the
entry's version column.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from sqlmodel import select, func
from sqlalchemy import delete
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from src.app.repositories.ledger_entry_repository import (
    LedgerEntryRepository,
    LedgerEntryFilter,
    StatusTotal,
)
from src.domain.errors import DuplicateTransactionId, StaleWrite
from src.domain.ledger_entry import (
    LedgerEntry,
    EntryStatus,
    PAYMENT_EXPIRY_HOURS,
    NON_PAYMENT_EXPIRY_HOURS,
)


class SqlAlchemyLedgerEntryRepository(LedgerEntryRepository):
    """
    SQLAlchemy implementation of LedgerEntryRepository

    Features:
    - Duplicate transaction_id detection (pre-check plus unique index)
    - Expiry assignment on create
    - Version-checked writes (StaleWrite on lost update)
    - Status aggregates for dashboards
    """

    def __init__(
        self,
        session: AsyncSession,
        payment_expiry_hours: int = PAYMENT_EXPIRY_HOURS,
        non_payment_expiry_hours: int = NON_PAYMENT_EXPIRY_HOURS,
    ):
        self.session = session
        self.payment_expiry_hours = payment_expiry_hours
        self.non_payment_expiry_hours = non_payment_expiry_hours

    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Create a new ledger entry

        Args:
            entry: LedgerEntry entity to persist

        Returns:
            Created LedgerEntry with expires_at assigned

        Raises:
            DuplicateTransactionId: If transaction_id already exists
        """
        if await self.get_by_transaction_id(entry.transaction_id):
            raise DuplicateTransactionId(entry.transaction_id)

        entry.currency = (entry.currency or "LKR").upper()
        entry.assign_expiry(self.payment_expiry_hours, self.non_payment_expiry_hours)

        self.session.add(entry)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost the race against a concurrent insert of the same id
            if "transaction_id" in str(e.orig):
                raise DuplicateTransactionId(entry.transaction_id) from e
            raise
        await self.session.refresh(entry)
        return entry

    async def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        stmt = select(LedgerEntry).where(LedgerEntry.id == entry_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_transaction_id(self, transaction_id: str) -> Optional[LedgerEntry]:
        stmt = select(LedgerEntry).where(LedgerEntry.transaction_id == transaction_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _apply_filters(self, stmt, filters: Optional[LedgerEntryFilter]):
        if filters is None:
            return stmt
        for field, value in filters.model_dump(exclude_none=True).items():
            stmt = stmt.where(getattr(LedgerEntry, field) == value)
        return stmt

    async def find(
        self,
        filters: Optional[LedgerEntryFilter] = None,
        newest_first: bool = True,
        limit: Optional[int] = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """
        Find entries matching all given filters

        Args:
            filters: Equality filters (None fields are ignored)
            newest_first: Sort by created_at descending (default) or ascending
            limit: Maximum number of entries (None = no limit)
            offset: Number of entries to skip

        Returns:
            List of matching LedgerEntry
        """
        stmt = self._apply_filters(select(LedgerEntry), filters)
        order = LedgerEntry.created_at.desc() if newest_first else LedgerEntry.created_at.asc()
        stmt = stmt.order_by(order).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, filters: Optional[LedgerEntryFilter] = None) -> int:
        stmt = self._apply_filters(select(func.count(LedgerEntry.id)), filters)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def save(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Persist all changes of an entry

        Raises:
            StaleWrite: If the row's version changed since the entry was loaded
        """
        entry_id = entry.id
        entry.updated_at = datetime.utcnow()
        self.session.add(entry)
        try:
            await self.session.flush()
        except StaleDataError as e:
            # entry is expired after the failed flush; do not touch its attributes
            raise StaleWrite(entry_id) from e
        await self.session.refresh(entry)
        return entry

    async def get_status_counts(self) -> dict[EntryStatus, StatusTotal]:
        stmt = select(
            LedgerEntry.status,
            func.count(LedgerEntry.id),
            func.coalesce(func.sum(LedgerEntry.amount), 0),
        ).group_by(LedgerEntry.status)
        result = await self.session.execute(stmt)

        return {
            EntryStatus(status): StatusTotal(count=count, total_amount=Decimal(str(total)))
            for status, count, total in result.all()
        }

    async def get_recent_failures(
        self, window_hours: int = 24, now: Optional[datetime] = None
    ) -> list[LedgerEntry]:
        since = (now or datetime.utcnow()) - timedelta(hours=window_hours)
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.status == EntryStatus.FAILED)
            .where(LedgerEntry.updated_at >= since)
            .order_by(LedgerEntry.updated_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        stmt = (
            delete(LedgerEntry)
            .where(LedgerEntry.expires_at.is_not(None))
            .where(LedgerEntry.expires_at <= (now or datetime.utcnow()))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
