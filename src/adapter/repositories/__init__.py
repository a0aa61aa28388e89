from .ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from .commission_record_repository import SqlAlchemyCommissionRecordRepository

__all__ = [
    "SqlAlchemyLedgerEntryRepository",
    "SqlAlchemyCommissionRecordRepository",
]
