"""
Commission report use cases

ListCommissions, GetCommissionStats and GetStorePayoutSummary back the admin
commission screens and store payout reporting.
"""
from datetime import datetime
from typing import Optional
from libs.result import Result, Return
from src.app.repositories.commission_record_repository import CommissionRecordRepository
from src.domain.commission_record import CommissionStatus
from src.domain.operator import Operator, Permission
from .dtos import (
    CommissionMonthlyStatsDTO,
    CommissionOverallStatsDTO,
    CommissionStatsResponseDTO,
    ListCommissionsResponseDTO,
    StorePayoutRowDTO,
    StorePayoutSummaryResponseDTO,
)
from .mappers import commission_to_dto, forbidden


class ListCommissions:
    def __init__(self, commission_repo: CommissionRecordRepository):
        self.commission_repo = commission_repo

    async def execute(
        self,
        operator: Operator,
        store_id: Optional[str] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Result[ListCommissionsResponseDTO]:
        denied = forbidden(operator, Permission.COMMISSION_READ)
        if denied:
            return Return.err(denied)

        records = await self.commission_repo.list_records(
            store_id=store_id, status=status, limit=limit, offset=offset
        )
        return Return.ok(
            ListCommissionsResponseDTO(
                records=[commission_to_dto(record) for record in records],
                limit=limit,
                offset=offset,
            )
        )


class GetCommissionStats:
    """
    Use case: Overall and current-month commission totals

    The month starts at 00:00 UTC on day 1 of ``now``'s month.
    """

    def __init__(self, commission_repo: CommissionRecordRepository):
        self.commission_repo = commission_repo

    async def execute(
        self, operator: Operator, now: Optional[datetime] = None
    ) -> Result[CommissionStatsResponseDTO]:
        denied = forbidden(operator, Permission.COMMISSION_READ)
        if denied:
            return Return.err(denied)

        now = now or datetime.utcnow()
        month_start = datetime(now.year, now.month, 1)

        overall = await self.commission_repo.get_totals()
        monthly = await self.commission_repo.get_totals(since=month_start)

        return Return.ok(
            CommissionStatsResponseDTO(
                overall=CommissionOverallStatsDTO(
                    total_commissions=overall.total_commission,
                    total_transactions=overall.count,
                    avg_commission=overall.average_commission,
                ),
                monthly=CommissionMonthlyStatsDTO(
                    monthly_commissions=monthly.total_commission,
                    monthly_transactions=monthly.count,
                ),
                month_start=month_start,
            )
        )


class GetStorePayoutSummary:
    def __init__(self, commission_repo: CommissionRecordRepository):
        self.commission_repo = commission_repo

    async def execute(
        self, operator: Operator, store_id: Optional[str] = None
    ) -> Result[StorePayoutSummaryResponseDTO]:
        denied = forbidden(operator, Permission.COMMISSION_READ)
        if denied:
            return Return.err(denied)

        rows = await self.commission_repo.get_store_payout_summary(store_id)
        return Return.ok(
            StorePayoutSummaryResponseDTO(
                store_id=store_id,
                rows=[StorePayoutRowDTO(**row.model_dump()) for row in rows],
            )
        )
