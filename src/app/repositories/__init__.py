from .ledger_entry_repository import LedgerEntryRepository, LedgerEntryFilter, StatusTotal
from .commission_record_repository import (
    CommissionRecordRepository,
    CommissionTotals,
    StorePayoutRow,
)

__all__ = [
    "LedgerEntryRepository",
    "LedgerEntryFilter",
    "StatusTotal",
    "CommissionRecordRepository",
    "CommissionTotals",
    "StorePayoutRow",
]
