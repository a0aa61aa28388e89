"""Commission Reconciliation Background Worker

Periodically cross-checks payment ledger entries against commission records.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.repositories.commission_record_repository import SqlAlchemyCommissionRecordRepository
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.use_cases.ledger import ReconcileCommissions, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class CommissionReconcilerWorker:
    """
    Background worker for commission reconciliation

    Features:
    - Reports payments without a commission record and orphan commissions
    - Optionally creates the missing commission records (repair mode)
    - Can run once or continuously
    - Configurable interval (default: daily)

    Usage:
        # Run once
        worker = CommissionReconcilerWorker()
        result = await worker.run_once()

        # Run continuously
        worker = CommissionReconcilerWorker(repair=True)
        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        repair: Optional[bool] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            repair: Create missing commission records
                (defaults to ApplicationConfig.RECONCILIATION_REPAIR)
            notification_service: Receives unrepaired discrepancies
                (defaults to log + ApplicationConfig.NOTIFICATION_WEBHOOK_URL)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.repair = ApplicationConfig.RECONCILIATION_REPAIR if repair is None else repair
        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.NOTIFICATION_WEBHOOK_URL
        )

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info(f"CommissionReconcilerWorker initialized (repair={self.repair})")

    async def run_once(self) -> ReconciliationResultDTO:
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Commission reconciliation is disabled, skipping")
            return ReconciliationResultDTO(
                entries_checked=0,
                commissions_checked=0,
                discrepancies_found=0,
                repaired=0,
                discrepancies=[],
                reconciliation_time=datetime.utcnow(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            use_case = ReconcileCommissions(
                uow=SqlAlchemyUnitOfWork(session),
                entry_repo=SqlAlchemyLedgerEntryRepository(session),
                commission_repo=SqlAlchemyCommissionRecordRepository(session),
                default_commission_rate=Decimal(str(ApplicationConfig.DEFAULT_COMMISSION_RATE)),
                retention_hours=ApplicationConfig.PAYMENT_EXPIRY_HOURS,
            )

            result = await use_case.execute(repair=self.repair)

            if result.is_err():
                logger.error(f"Reconciliation failed: {result.error.message}")
                raise RuntimeError(f"Reconciliation failed: {result.error.message}")

            response = result.value

            unrepaired = [d for d in response.discrepancies if not d.repaired]
            if unrepaired:
                logger.error(f"ALERT: {len(unrepaired)} commission discrepancies need attention!")
                delivered = await self.notification_service.send_reconciliation_alert(
                    [d.model_dump(mode="json") for d in unrepaired]
                )
                if not delivered:
                    logger.error("Reconciliation alert was not delivered")

            return response

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(
            f"Starting continuous commission reconciliation with {interval_seconds}s interval"
        )

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Checked {result.entries_checked} payments and "
                    f"{result.commissions_checked} commissions, "
                    f"found {result.discrepancies_found} discrepancies "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("CommissionReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.commission_reconciler --once

        # Run once and create missing commission records
        python -m src.worker.commission_reconciler --once --repair

        # Run continuously with custom interval (in seconds)
        python -m src.worker.commission_reconciler --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Commission Reconciliation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--repair", action="store_true", help="Create missing commission records"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = CommissionReconcilerWorker(repair=args.repair or None)

    try:
        if args.once:
            result = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Payments checked: {result.entries_checked}")
            print(f"  Commissions checked: {result.commissions_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Repaired: {result.repaired}")
            print(f"  Execution time: {result.execution_time_ms}ms")
            for d in result.discrepancies:
                print(
                    f"  - {d.kind}: store={d.store_id}, order={d.order_id}, "
                    f"booking={d.booking_id}, amount={d.amount}, repaired={d.repaired}"
                )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
