"""Domain errors for the transaction ledger

Raised by the domain layer and repositories; use cases translate them into
``libs.result.Error`` values so routes and workers never see raw exceptions.
"""


class LedgerError(Exception):
    """Base class for ledger domain errors"""

    code = "LEDGER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateTransactionId(LedgerError):
    code = "DUPLICATE_TRANSACTION_ID"

    def __init__(self, transaction_id: str):
        super().__init__(f"Ledger entry with transaction id {transaction_id} already exists")
        self.transaction_id = transaction_id


class InvalidAmount(LedgerError):
    code = "INVALID_AMOUNT"


class InvalidTransition(LedgerError):
    code = "INVALID_TRANSITION"

    def __init__(self, entry_id: str, current: str, target: str):
        super().__init__(
            f"Ledger entry {entry_id} cannot move from {current} to {target}"
        )
        self.entry_id = entry_id
        self.current = current
        self.target = target


class StaleWrite(LedgerError):
    code = "STALE_WRITE"

    def __init__(self, entry_id: str, expected_version=None, actual_version=None):
        if expected_version is not None:
            message = (
                f"Ledger entry {entry_id} was modified concurrently "
                f"(expected version {expected_version}, found {actual_version})"
            )
        else:
            message = f"Ledger entry {entry_id} was modified concurrently"
        super().__init__(message)
        self.entry_id = entry_id


class EntryNotFound(LedgerError):
    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        super().__init__(f"Ledger entry {entry_id} not found")
        self.entry_id = entry_id


class CommissionMismatch(LedgerError):
    """A retried payment disagrees with the commission already recorded"""

    code = "COMMISSION_MISMATCH"

    def __init__(self, reference_id: str, field: str, recorded, received):
        super().__init__(
            f"Commission for {reference_id} was recorded with {field}={recorded}, "
            f"payment has {field}={received}"
        )
        self.reference_id = reference_id
        self.field = field
