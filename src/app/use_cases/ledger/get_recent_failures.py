"""
Get Recent Failures Use Case

Failed ledger entries updated within a trailing window, newest first.
"""
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.operator import Operator, Permission
from .dtos import RecentFailuresResponseDTO
from .mappers import entry_to_dto, forbidden


class GetRecentFailures:
    def __init__(self, entry_repo: LedgerEntryRepository):
        self.entry_repo = entry_repo

    async def execute(
        self,
        operator: Operator,
        window_hours: int = 24,
        now: Optional[datetime] = None,
    ) -> Result[RecentFailuresResponseDTO]:
        """
        List recent failures.

        Args:
            operator: Caller (needs ledger:read)
            window_hours: Trailing window size in hours (must be > 0)
            now: Reference time, defaults to utcnow

        Returns:
            Result[RecentFailuresResponseDTO]
        """
        denied = forbidden(operator, Permission.LEDGER_READ)
        if denied:
            return Return.err(denied)

        if window_hours <= 0:
            return Return.err(
                Error(
                    code="INVALID_WINDOW",
                    message=f"window_hours must be positive, got {window_hours}",
                )
            )

        entries = await self.entry_repo.get_recent_failures(window_hours, now=now)
        return Return.ok(
            RecentFailuresResponseDTO(
                window_hours=window_hours,
                count=len(entries),
                entries=[entry_to_dto(entry) for entry in entries],
            )
        )
