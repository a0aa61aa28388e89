from .base import BaseModel, generate_uuid
from .ledger_entry import (
    LedgerEntry,
    EntryStatus,
    EntryType,
    PaymentMethod,
    PaymentProvider,
    TERMINAL_STATUSES,
)
from .commission_record import CommissionRecord, CommissionType, CommissionStatus
from .commission import CommissionSplit, calculate_commission
from .ledger_lifecycle import LedgerLifecycle
from .operator import Operator, Permission
from .errors import (
    LedgerError,
    DuplicateTransactionId,
    InvalidAmount,
    InvalidTransition,
    StaleWrite,
    EntryNotFound,
    CommissionMismatch,
)

__all__ = [
    "BaseModel",
    "generate_uuid",
    "LedgerEntry",
    "EntryStatus",
    "EntryType",
    "PaymentMethod",
    "PaymentProvider",
    "TERMINAL_STATUSES",
    "CommissionRecord",
    "CommissionType",
    "CommissionStatus",
    "CommissionSplit",
    "calculate_commission",
    "LedgerLifecycle",
    "Operator",
    "Permission",
    "LedgerError",
    "DuplicateTransactionId",
    "InvalidAmount",
    "InvalidTransition",
    "StaleWrite",
    "EntryNotFound",
    "CommissionMismatch",
]
