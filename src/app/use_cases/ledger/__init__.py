"""Transaction ledger use cases"""
from .record_payment import RecordPayment
from .create_ledger_entry import CreateLedgerEntry
from .update_entry_status import (
    MarkEntryProcessing,
    MarkEntryCompleted,
    MarkEntryFailed,
    MarkEntryCancelled,
)
from .get_ledger_entry import GetLedgerEntry, ListLedgerEntries
from .get_status_counts import GetStatusCounts
from .get_recent_failures import GetRecentFailures
from .commission_reports import ListCommissions, GetCommissionStats, GetStorePayoutSummary
from .generate_payout_statement import GenerateStorePayoutStatement
from .reconcile_commissions import ReconcileCommissions
from .purge_expired_entries import PurgeExpiredEntries
from .dtos import (
    EntryMetadataDTO,
    RecordPaymentCommandDTO,
    CreateEntryCommandDTO,
    MarkProcessingCommandDTO,
    MarkCompletedCommandDTO,
    MarkFailedCommandDTO,
    MarkCancelledCommandDTO,
    LedgerEntryResponseDTO,
    CommissionRecordDTO,
    RecordPaymentResponseDTO,
    ListLedgerEntriesResponseDTO,
    StatusCountsResponseDTO,
    RecentFailuresResponseDTO,
    ListCommissionsResponseDTO,
    CommissionStatsResponseDTO,
    StorePayoutSummaryResponseDTO,
    PayoutStatementResponseDTO,
    CommissionDiscrepancyDTO,
    ReconciliationResultDTO,
    PurgeExpiredResultDTO,
)

__all__ = [
    "RecordPayment",
    "CreateLedgerEntry",
    "MarkEntryProcessing",
    "MarkEntryCompleted",
    "MarkEntryFailed",
    "MarkEntryCancelled",
    "GetLedgerEntry",
    "ListLedgerEntries",
    "GetStatusCounts",
    "GetRecentFailures",
    "ListCommissions",
    "GetCommissionStats",
    "GetStorePayoutSummary",
    "GenerateStorePayoutStatement",
    "ReconcileCommissions",
    "PurgeExpiredEntries",
    "EntryMetadataDTO",
    "RecordPaymentCommandDTO",
    "CreateEntryCommandDTO",
    "MarkProcessingCommandDTO",
    "MarkCompletedCommandDTO",
    "MarkFailedCommandDTO",
    "MarkCancelledCommandDTO",
    "LedgerEntryResponseDTO",
    "CommissionRecordDTO",
    "RecordPaymentResponseDTO",
    "ListLedgerEntriesResponseDTO",
    "StatusCountsResponseDTO",
    "RecentFailuresResponseDTO",
    "ListCommissionsResponseDTO",
    "CommissionStatsResponseDTO",
    "StorePayoutSummaryResponseDTO",
    "PayoutStatementResponseDTO",
    "CommissionDiscrepancyDTO",
    "ReconciliationResultDTO",
    "PurgeExpiredResultDTO",
]
