"""Ledger entry lifecycle

State machine over LedgerEntry.status:

    pending ----> processing ----> completed
       |  \           |
       |   \--------> failed <---- (pending | processing | failed)
       |                |
       |                +--> processing (retry)
       +--> completed (fast path: provider confirmed without a processing step)

    pending | processing | failed --> cancelled

completed, cancelled and refunded are terminal.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional
from src.domain.errors import InvalidTransition, StaleWrite
from src.domain.ledger_entry import EntryStatus, LedgerEntry, MAX_RETRY_COUNT

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[EntryStatus, frozenset] = {
    EntryStatus.PENDING: frozenset(
        {EntryStatus.PROCESSING, EntryStatus.COMPLETED, EntryStatus.FAILED, EntryStatus.CANCELLED}
    ),
    EntryStatus.PROCESSING: frozenset(
        {EntryStatus.COMPLETED, EntryStatus.FAILED, EntryStatus.CANCELLED}
    ),
    EntryStatus.FAILED: frozenset(
        {EntryStatus.PROCESSING, EntryStatus.FAILED, EntryStatus.CANCELLED}
    ),
    EntryStatus.COMPLETED: frozenset(),
    EntryStatus.CANCELLED: frozenset(),
    EntryStatus.REFUNDED: frozenset(),
}


def can_transition(current: EntryStatus, target: EntryStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class LedgerLifecycle:
    """
    Applies guarded status transitions to a LedgerEntry in memory

    The caller persists the entry afterwards; the repository's version check
    rejects the write if somebody else saved the entry in the meantime.
    """

    def __init__(self, max_retry_count: int = MAX_RETRY_COUNT):
        self.max_retry_count = max_retry_count

    def _guard(
        self,
        entry: LedgerEntry,
        target: EntryStatus,
        expected_version: Optional[int],
    ) -> None:
        if expected_version is not None and expected_version != entry.version:
            raise StaleWrite(entry.id, expected_version, entry.version)
        if not can_transition(entry.status, target):
            raise InvalidTransition(entry.id, entry.status.value, target.value)

    def mark_processing(
        self,
        entry: LedgerEntry,
        operator_id: str,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> LedgerEntry:
        self._guard(entry, EntryStatus.PROCESSING, expected_version)
        entry.status = EntryStatus.PROCESSING
        entry.attempted_at = now or datetime.utcnow()
        entry.processed_by = operator_id
        if notes:
            entry.admin_notes = notes
        return entry

    def mark_completed(
        self,
        entry: LedgerEntry,
        operator_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> LedgerEntry:
        self._guard(entry, EntryStatus.COMPLETED, expected_version)
        entry.status = EntryStatus.COMPLETED
        entry.completed_at = now or datetime.utcnow()
        entry.processed_by = operator_id
        # new dict so the JSON column is flagged dirty
        entry.payment_metadata = {**(entry.payment_metadata or {}), **(metadata or {})}
        return entry

    def mark_failed(
        self,
        entry: LedgerEntry,
        reason: str,
        operator_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Move the entry to failed and count the attempt

        retry_count is clamped at ``max_retry_count``.

        Returns:
            True when the entry was already at the retry limit, i.e. this
            failure is one more than the limit allows
        """
        self._guard(entry, EntryStatus.FAILED, expected_version)
        entry.status = EntryStatus.FAILED
        entry.failed_at = now or datetime.utcnow()
        entry.payment_metadata = {**(entry.payment_metadata or {}), "failure_reason": reason}
        if operator_id:
            entry.processed_by = operator_id

        limit_exceeded = entry.retry_count >= self.max_retry_count
        if limit_exceeded:
            logger.warning(
                f"Ledger entry {entry.id} (transaction_id={entry.transaction_id}) "
                f"failed again after reaching the retry limit of {self.max_retry_count}"
            )
        else:
            entry.retry_count += 1
        return limit_exceeded

    def mark_cancelled(
        self,
        entry: LedgerEntry,
        operator_id: str,
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> LedgerEntry:
        self._guard(entry, EntryStatus.CANCELLED, expected_version)
        entry.status = EntryStatus.CANCELLED
        entry.processed_by = operator_id
        if reason:
            entry.admin_notes = reason
        return entry
