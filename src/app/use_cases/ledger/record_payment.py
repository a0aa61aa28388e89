"""RecordPayment Use Case

Creates the pending payment ledger entry and the commission record for an
order or booking in a single unit of work.
"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.app.repositories.commission_record_repository import CommissionRecordRepository
from src.domain.commission import calculate_commission, DEFAULT_COMMISSION_RATE
from src.domain.commission_record import CommissionRecord, CommissionType
from src.domain.errors import CommissionMismatch, LedgerError
from src.domain.ledger_entry import LedgerEntry, EntryType
from src.domain.operator import Operator, Permission
from .dtos import RecordPaymentCommandDTO, RecordPaymentResponseDTO
from .mappers import entry_to_dto, commission_to_dto, domain_error, forbidden

logger = logging.getLogger(__name__)


class RecordPayment:
    """
    Use Case: Record an order/booking payment

    Business Rules:
    1. Operator needs ledger:write
    2. Amount and rate are validated by the commission calculator before any write
    3. transaction_id must be unique (DUPLICATE_TRANSACTION_ID otherwise)
    4. Ledger entry and commission record commit together or not at all
    5. One commission record per order/booking: a retried payment reuses it,
       provided store, amount and currency match (COMMISSION_MISMATCH otherwise)

    Flow:
    1. Calculate the commission split
    2. Look up an existing commission for the order/booking
    3. Create the pending payment entry
    4. Create the commission record (unless it already exists)
    5. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        entry_repo: LedgerEntryRepository,
        commission_repo: CommissionRecordRepository,
        default_commission_rate: Decimal = DEFAULT_COMMISSION_RATE,
    ):
        self.uow = uow
        self.entry_repo = entry_repo
        self.commission_repo = commission_repo
        self.default_commission_rate = default_commission_rate

    async def _existing_commission(
        self, command: RecordPaymentCommandDTO
    ) -> Optional[CommissionRecord]:
        if command.order_id is not None:
            return await self.commission_repo.get_by_order_id(command.order_id)
        return await self.commission_repo.get_by_booking_id(command.booking_id)

    @staticmethod
    def _check_reusable(
        commission: CommissionRecord, store_id: str, total_amount: Decimal, currency: str
    ) -> None:
        reference_id = commission.reference_id
        if commission.store_id != store_id:
            raise CommissionMismatch(reference_id, "store_id", commission.store_id, store_id)
        if Decimal(commission.total_amount) != total_amount:
            raise CommissionMismatch(
                reference_id, "total_amount", commission.total_amount, total_amount
            )
        if commission.currency != currency:
            raise CommissionMismatch(reference_id, "currency", commission.currency, currency)

    async def execute(
        self, operator: Operator, command: RecordPaymentCommandDTO
    ) -> Result[RecordPaymentResponseDTO]:
        denied = forbidden(operator, Permission.LEDGER_WRITE)
        if denied:
            return Return.err(denied)

        try:
            # Step 1: Validate and split before touching storage
            rate = (
                command.commission_rate
                if command.commission_rate is not None
                else self.default_commission_rate
            )
            split = calculate_commission(command.amount, rate)
            currency = command.currency.upper()

            # Step 2: A retried payment keeps the order's original split
            commission = await self._existing_commission(command)
            if commission is not None:
                self._check_reusable(commission, command.store_id, split.total_amount, currency)

            # Step 3: Pending payment entry
            entry = LedgerEntry(
                transaction_id=command.transaction_id,
                user_id=command.user_id,
                store_id=command.store_id,
                order_id=command.order_id,
                booking_id=command.booking_id,
                amount=split.total_amount,
                currency=currency,
                payment_method=command.payment_method,
                payment_provider=command.payment_provider,
                type=EntryType.PAYMENT,
                description=command.description,
                payment_metadata=command.metadata.as_metadata() if command.metadata else {},
            )
            created_entry = await self.entry_repo.create(entry)

            # Step 4: Commission record
            commission_created = commission is None
            if commission_created:
                commission = await self.commission_repo.create(
                    CommissionRecord(
                        store_id=command.store_id,
                        order_id=command.order_id,
                        booking_id=command.booking_id,
                        type=CommissionType.ORDER if command.order_id else CommissionType.BOOKING,
                        total_amount=split.total_amount,
                        commission_rate=split.commission_rate,
                        commission_amount=split.commission_amount,
                        store_amount=split.store_amount,
                        currency=currency,
                    )
                )

            # Step 5: Both rows or neither
            await self.uow.commit()

            logger.info(
                f"Recorded payment {created_entry.transaction_id} for store {command.store_id}: "
                f"amount={split.total_amount}, commission={split.commission_amount}, "
                f"store={split.store_amount}, new_commission={commission_created}"
            )

            return Return.ok(
                RecordPaymentResponseDTO(
                    entry=entry_to_dto(created_entry),
                    commission=commission_to_dto(commission),
                    commission_created=commission_created,
                )
            )

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Payment {command.transaction_id} rejected: {e.message}")
            return Return.err(domain_error(e))
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to record payment {command.transaction_id}: {e}")
            return Return.err(
                Error(
                    code="RECORD_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )
