"""SQLAlchemy implementation of CommissionRecordRepository"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.commission_record_repository import (
    CommissionRecordRepository,
    CommissionTotals,
    StorePayoutRow,
)
from src.domain.commission import CENTS
from src.domain.commission_record import CommissionRecord, CommissionStatus


def _dec(value) -> Decimal:
    return Decimal("0") if value is None else Decimal(str(value))


class SqlAlchemyCommissionRecordRepository(CommissionRecordRepository):
    """
    SQLAlchemy implementation of CommissionRecordRepository

    Aggregates run in the database; averages are derived from sum/count so
    they round the same way on every backend.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, record: CommissionRecord) -> CommissionRecord:
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def get_by_order_id(self, order_id: str) -> Optional[CommissionRecord]:
        stmt = select(CommissionRecord).where(CommissionRecord.order_id == order_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_booking_id(self, booking_id: str) -> Optional[CommissionRecord]:
        stmt = select(CommissionRecord).where(CommissionRecord.booking_id == booking_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_records(
        self,
        store_id: Optional[str] = None,
        status: Optional[CommissionStatus] = None,
        created_since: Optional[datetime] = None,
        limit: Optional[int] = 100,
        offset: int = 0,
    ) -> list[CommissionRecord]:
        stmt = select(CommissionRecord)
        if store_id is not None:
            stmt = stmt.where(CommissionRecord.store_id == store_id)
        if status is not None:
            stmt = stmt.where(CommissionRecord.status == status)
        if created_since is not None:
            stmt = stmt.where(CommissionRecord.created_at >= created_since)
        stmt = stmt.order_by(
            CommissionRecord.created_at.desc(), CommissionRecord.id.desc()
        ).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_totals(self, since: Optional[datetime] = None) -> CommissionTotals:
        stmt = select(
            func.count(CommissionRecord.id),
            func.sum(CommissionRecord.commission_amount),
        )
        if since is not None:
            stmt = stmt.where(CommissionRecord.created_at >= since)

        result = await self.session.execute(stmt)
        count, total = result.one()
        total = _dec(total)
        average = (total / count).quantize(CENTS) if count else Decimal("0")

        return CommissionTotals(
            count=count,
            total_commission=total,
            average_commission=average,
        )

    async def get_store_payout_summary(
        self, store_id: Optional[str] = None
    ) -> list[StorePayoutRow]:
        stmt = select(
            CommissionRecord.store_id,
            CommissionRecord.status,
            func.count(CommissionRecord.id),
            func.sum(CommissionRecord.total_amount),
            func.sum(CommissionRecord.commission_amount),
            func.sum(CommissionRecord.store_amount),
        )
        if store_id is not None:
            stmt = stmt.where(CommissionRecord.store_id == store_id)
        stmt = stmt.group_by(CommissionRecord.store_id, CommissionRecord.status).order_by(
            CommissionRecord.store_id
        )

        result = await self.session.execute(stmt)
        return [
            StorePayoutRow(
                store_id=row_store_id,
                status=CommissionStatus(status),
                count=count,
                total_amount=_dec(total),
                commission_amount=_dec(commission),
                store_amount=_dec(store),
            )
            for row_store_id, status, count, total, commission, store in result.all()
        ]
