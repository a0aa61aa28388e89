"""
Ledger entry read use cases

GetLedgerEntry looks up a single entry by id or provider transaction id;
ListLedgerEntries pages through entries matching filters, newest first.
"""
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository, LedgerEntryFilter
from src.domain.errors import EntryNotFound
from src.domain.operator import Operator, Permission
from .dtos import LedgerEntryResponseDTO, ListLedgerEntriesResponseDTO
from .mappers import entry_to_dto, domain_error, forbidden


class GetLedgerEntry:
    def __init__(self, entry_repo: LedgerEntryRepository):
        self.entry_repo = entry_repo

    async def execute(
        self,
        operator: Operator,
        entry_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> Result[LedgerEntryResponseDTO]:
        denied = forbidden(operator, Permission.LEDGER_READ)
        if denied:
            return Return.err(denied)

        if entry_id is None and transaction_id is None:
            return Return.err(
                Error(
                    code="INVALID_LOOKUP",
                    message="Either entry_id or transaction_id is required",
                )
            )

        if entry_id is not None:
            entry = await self.entry_repo.get_by_id(entry_id)
        else:
            entry = await self.entry_repo.get_by_transaction_id(transaction_id)

        if entry is None:
            return Return.err(domain_error(EntryNotFound(entry_id or transaction_id)))
        return Return.ok(entry_to_dto(entry))


class ListLedgerEntries:
    def __init__(self, entry_repo: LedgerEntryRepository):
        self.entry_repo = entry_repo

    async def execute(
        self,
        operator: Operator,
        filters: Optional[LedgerEntryFilter] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Result[ListLedgerEntriesResponseDTO]:
        denied = forbidden(operator, Permission.LEDGER_READ)
        if denied:
            return Return.err(denied)

        entries = await self.entry_repo.find(filters, limit=limit, offset=offset)
        total = await self.entry_repo.count(filters)

        return Return.ok(
            ListLedgerEntriesResponseDTO(
                entries=[entry_to_dto(entry) for entry in entries],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
