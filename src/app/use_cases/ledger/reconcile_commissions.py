"""ReconcileCommissions Use Case

Cross-checks payment ledger entries against commission records.
"""

import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository, LedgerEntryFilter
from src.app.repositories.commission_record_repository import CommissionRecordRepository
from src.domain.commission import calculate_commission, DEFAULT_COMMISSION_RATE
from src.domain.commission_record import CommissionRecord, CommissionType
from src.domain.ledger_entry import EntryType, PAYMENT_EXPIRY_HOURS
from .dtos import CommissionDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)

MISSING_COMMISSION = "missing_commission"
ORPHAN_COMMISSION = "orphan_commission"


class ReconcileCommissions:
    """
    Use Case: Reconcile ledger entries and commission records

    Business Rules:
    1. Every payment entry that references an order/booking should have a
       commission record for that order/booking
    2. Every commission record younger than the payment retention window
       should have a payment entry; older entries may already be evicted
    3. Without ``repair`` nothing is written
    4. With ``repair`` missing commission records are created at the
       default rate; orphan commissions are only reported

    Flow:
    1. Scan payment entries, look up their commission
    2. Scan recent commission records, look up their payment entry
    3. Optionally create missing commissions and commit
    4. Return the discrepancies
    """

    def __init__(
        self,
        uow: UnitOfWork,
        entry_repo: LedgerEntryRepository,
        commission_repo: CommissionRecordRepository,
        default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
        retention_hours: int = PAYMENT_EXPIRY_HOURS,
    ):
        self.uow = uow
        self.entry_repo = entry_repo
        self.commission_repo = commission_repo
        self.default_commission_rate = default_commission_rate
        self.retention_hours = retention_hours

    async def execute(
        self, repair: bool = False, now: Optional[datetime] = None
    ) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = now or datetime.utcnow()

        try:
            logger.info(f"Starting commission reconciliation (repair={repair})")
            discrepancies: list[CommissionDiscrepancyDTO] = []

            # Step 1: payment entries without commission
            entries = await self.entry_repo.find(
                LedgerEntryFilter(type=EntryType.PAYMENT), newest_first=False, limit=None
            )
            seen_references = set()
            repaired = 0

            for entry in entries:
                if entry.order_id is not None:
                    key = (CommissionType.ORDER, entry.order_id)
                    commission = await self.commission_repo.get_by_order_id(entry.order_id)
                elif entry.booking_id is not None:
                    key = (CommissionType.BOOKING, entry.booking_id)
                    commission = await self.commission_repo.get_by_booking_id(entry.booking_id)
                else:
                    continue

                # Retried payments share one commission
                if commission is not None or key in seen_references:
                    seen_references.add(key)
                    continue
                seen_references.add(key)

                discrepancy = CommissionDiscrepancyDTO(
                    kind=MISSING_COMMISSION,
                    store_id=entry.store_id,
                    order_id=entry.order_id,
                    booking_id=None if entry.order_id else entry.booking_id,
                    transaction_id=entry.transaction_id,
                    amount=entry.amount,
                )

                if repair:
                    split = calculate_commission(entry.amount, self.default_commission_rate)
                    await self.commission_repo.create(
                        CommissionRecord(
                            store_id=entry.store_id,
                            order_id=discrepancy.order_id,
                            booking_id=discrepancy.booking_id,
                            type=key[0],
                            total_amount=split.total_amount,
                            commission_rate=split.commission_rate,
                            commission_amount=split.commission_amount,
                            store_amount=split.store_amount,
                            currency=entry.currency,
                        )
                    )
                    discrepancy.repaired = True
                    repaired += 1

                discrepancies.append(discrepancy)
                logger.warning(
                    f"Payment {entry.transaction_id} (store {entry.store_id}) "
                    f"has no commission record for {key[0].value} {key[1]}"
                )

            # Step 2: recent commissions without a payment entry
            since = reconciliation_time - timedelta(hours=self.retention_hours)
            commissions = await self.commission_repo.list_records(
                created_since=since, limit=None
            )
            for commission in commissions:
                filters = LedgerEntryFilter(
                    type=EntryType.PAYMENT,
                    order_id=commission.order_id,
                    booking_id=commission.booking_id,
                )
                if await self.entry_repo.count(filters) > 0:
                    continue

                discrepancies.append(
                    CommissionDiscrepancyDTO(
                        kind=ORPHAN_COMMISSION,
                        store_id=commission.store_id,
                        order_id=commission.order_id,
                        booking_id=commission.booking_id,
                        amount=commission.total_amount,
                    )
                )
                logger.warning(
                    f"Commission {commission.id} for {commission.type.value} "
                    f"{commission.reference_id} has no payment entry"
                )

            # Step 3: persist repairs
            if repaired:
                await self.uow.commit()

            execution_time_ms = int((time.time() - start_time) * 1000)
            response = ReconciliationResultDTO(
                entries_checked=len(entries),
                commissions_checked=len(commissions),
                discrepancies_found=len(discrepancies),
                repaired=repaired,
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"({repaired} repaired) in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. {len(entries)} payments and "
                    f"{len(commissions)} commissions consistent in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Commission reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile commission records",
                    reason=str(e),
                )
            )
