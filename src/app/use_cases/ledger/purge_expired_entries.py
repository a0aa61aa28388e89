"""PurgeExpiredEntries Use Case

Storage-side TTL for ledger entries: deletes every entry whose expires_at
has passed. Nothing in the lifecycle reacts to expiry.
"""

import logging
from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from .dtos import PurgeExpiredResultDTO

logger = logging.getLogger(__name__)


class PurgeExpiredEntries:
    def __init__(self, uow: UnitOfWork, entry_repo: LedgerEntryRepository):
        self.uow = uow
        self.entry_repo = entry_repo

    async def execute(self, now: Optional[datetime] = None) -> Result[PurgeExpiredResultDTO]:
        swept_at = now or datetime.utcnow()
        try:
            deleted = await self.entry_repo.delete_expired(swept_at)
            await self.uow.commit()

            if deleted:
                logger.info(f"Evicted {deleted} expired ledger entries")
            return Return.ok(PurgeExpiredResultDTO(deleted=deleted, swept_at=swept_at))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Expiry sweep failed: {e}")
            return Return.err(
                Error(
                    code="EXPIRY_SWEEP_FAILED",
                    message="Failed to evict expired ledger entries",
                    reason=str(e),
                )
            )
