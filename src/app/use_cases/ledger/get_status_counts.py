"""
Get Status Counts Use Case

Per-status entry count and amount sum for operational dashboards.
"""
from decimal import Decimal
from libs.result import Result, Return
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.operator import Operator, Permission
from .dtos import StatusCountDTO, StatusCountsResponseDTO
from .mappers import forbidden


class GetStatusCounts:
    """
    Use case: Ledger status dashboard

    Only statuses that currently have entries appear in the result.
    """

    def __init__(self, entry_repo: LedgerEntryRepository):
        self.entry_repo = entry_repo

    async def execute(self, operator: Operator) -> Result[StatusCountsResponseDTO]:
        denied = forbidden(operator, Permission.LEDGER_READ)
        if denied:
            return Return.err(denied)

        counts = await self.entry_repo.get_status_counts()

        statuses = {
            status: StatusCountDTO(count=total.count, total_amount=total.total_amount)
            for status, total in counts.items()
        }
        return Return.ok(
            StatusCountsResponseDTO(
                statuses=statuses,
                total_count=sum(item.count for item in statuses.values()),
                total_amount=sum(
                    (item.total_amount for item in statuses.values()), Decimal("0")
                ),
            )
        )
