"""Ledger Entry Expiry Sweeper

Evicts ledger entries whose expires_at has passed. SQL backends have no TTL
index, so this worker plays that role. Can be run as a standalone script or
integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.ledger import PurgeExpiredEntries, PurgeExpiredResultDTO

logger = logging.getLogger(__name__)


class ExpirySweeperWorker:
    """
    Background worker for ledger entry eviction

    Usage:
        worker = ExpirySweeperWorker()
        result = await worker.run_once()

        await worker.run_forever(interval_seconds=300)
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("ExpirySweeperWorker initialized")

    async def run_once(self, now: Optional[datetime] = None) -> PurgeExpiredResultDTO:
        if not ApplicationConfig.EXPIRY_SWEEP_ENABLED:
            logger.info("Expiry sweep is disabled, skipping")
            return PurgeExpiredResultDTO(deleted=0, swept_at=now or datetime.utcnow())

        async with self.async_session_factory() as session:
            use_case = PurgeExpiredEntries(
                uow=SqlAlchemyUnitOfWork(session),
                entry_repo=SqlAlchemyLedgerEntryRepository(session),
            )
            result = await use_case.execute(now)

            if result.is_err():
                logger.error(f"Expiry sweep failed: {result.error.message}")
                raise RuntimeError(f"Expiry sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 300):
        logger.info(f"Starting expiry sweeper with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(f"Sweep complete. Evicted {result.deleted} entries")
            except Exception as e:
                logger.error(f"Sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()
        logger.info("ExpirySweeperWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.expiry_sweeper --once
        python -m src.worker.expiry_sweeper --interval 60
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Ledger Entry Expiry Sweeper")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.EXPIRY_SWEEP_INTERVAL_SECONDS,
        help="Interval between sweeps in seconds (default: 300)"
    )
    args = parser.parse_args()

    worker = ExpirySweeperWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print(f"Evicted {result.deleted} expired entries at {result.swept_at.isoformat()}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
