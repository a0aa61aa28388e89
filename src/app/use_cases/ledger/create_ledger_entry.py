"""CreateLedgerEntry Use Case

Records a refund, payout or adjustment entry. These carry no commission.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.commission import to_decimal
from src.domain.errors import InvalidAmount, LedgerError
from src.domain.ledger_entry import LedgerEntry
from src.domain.operator import Operator, Permission
from .dtos import CreateEntryCommandDTO, LedgerEntryResponseDTO
from .mappers import entry_to_dto, domain_error, forbidden

logger = logging.getLogger(__name__)


class CreateLedgerEntry:
    """
    Use Case: Create a standalone ledger entry

    Business Rules:
    1. Operator needs ledger:write
    2. Amount must be numeric and non-negative
    3. transaction_id must be unique
    4. expires_at defaults to created_at + 72h (24h for payments)
    """

    def __init__(self, uow: UnitOfWork, entry_repo: LedgerEntryRepository):
        self.uow = uow
        self.entry_repo = entry_repo

    async def execute(
        self, operator: Operator, command: CreateEntryCommandDTO
    ) -> Result[LedgerEntryResponseDTO]:
        denied = forbidden(operator, Permission.LEDGER_WRITE)
        if denied:
            return Return.err(denied)

        try:
            amount = to_decimal(command.amount)
            if amount < 0:
                raise InvalidAmount(f"amount must be >= 0, got {amount}")

            entry = LedgerEntry(
                transaction_id=command.transaction_id,
                user_id=command.user_id,
                store_id=command.store_id,
                order_id=command.order_id,
                booking_id=command.booking_id,
                amount=amount,
                currency=command.currency.upper(),
                payment_method=command.payment_method,
                payment_provider=command.payment_provider,
                type=command.type,
                description=command.description,
                payment_metadata=command.metadata.as_metadata() if command.metadata else {},
                expires_at=command.expires_at,
            )
            created = await self.entry_repo.create(entry)
            await self.uow.commit()

            logger.info(
                f"Created {created.type.value} entry {created.transaction_id} "
                f"for store {created.store_id} ({created.formatted_amount})"
            )
            return Return.ok(entry_to_dto(created))

        except LedgerError as e:
            await self.uow.rollback()
            return Return.err(domain_error(e))
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_ENTRY_FAILED",
                    message="Failed to create ledger entry",
                    reason=str(e),
                )
            )
