"""Ledger entry status transition use cases

MarkEntryProcessing, MarkEntryCompleted, MarkEntryFailed and
MarkEntryCancelled load the entry, apply the lifecycle transition and write
the entry back under its version check.
"""

import logging
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.errors import EntryNotFound, LedgerError
from src.domain.ledger_entry import LedgerEntry
from src.domain.ledger_lifecycle import LedgerLifecycle
from src.domain.operator import Operator, Permission
from .dtos import (
    LedgerEntryResponseDTO,
    MarkProcessingCommandDTO,
    MarkCompletedCommandDTO,
    MarkFailedCommandDTO,
    MarkCancelledCommandDTO,
)
from .mappers import entry_to_dto, domain_error, forbidden

logger = logging.getLogger(__name__)


class _EntryTransition:
    """
    Shared load -> transition -> save -> commit flow

    Business Rules:
    1. Operator needs ledger:write
    2. Unknown entry -> ENTRY_NOT_FOUND
    3. Terminal entries cannot move -> INVALID_TRANSITION
    4. expected_version mismatch or a concurrent write -> STALE_WRITE
    """

    failure_code = "TRANSITION_FAILED"

    def __init__(
        self,
        uow: UnitOfWork,
        entry_repo: LedgerEntryRepository,
        lifecycle: Optional[LedgerLifecycle] = None,
    ):
        self.uow = uow
        self.entry_repo = entry_repo
        self.lifecycle = lifecycle or LedgerLifecycle()

    async def _transition(
        self,
        operator: Operator,
        entry_id: str,
        apply: Callable[[LedgerEntry], object],
    ) -> Result[tuple]:
        """Returns (saved entry, value returned by apply)"""
        denied = forbidden(operator, Permission.LEDGER_WRITE)
        if denied:
            return Return.err(denied)

        try:
            entry = await self.entry_repo.get_by_id(entry_id)
            if entry is None:
                raise EntryNotFound(entry_id)

            previous = entry.status
            outcome = apply(entry)
            saved = await self.entry_repo.save(entry)
            await self.uow.commit()

            logger.info(
                f"Ledger entry {saved.id} moved {previous.value} -> {saved.status.value} "
                f"by {operator.id} (version {saved.version})"
            )
            return Return.ok((saved, outcome))

        except LedgerError as e:
            await self.uow.rollback()
            logger.warning(f"Transition of ledger entry {entry_id} rejected: {e.message}")
            return Return.err(domain_error(e))
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Transition of ledger entry {entry_id} failed: {e}")
            return Return.err(
                Error(
                    code=self.failure_code,
                    message=f"Failed to update ledger entry {entry_id}",
                    reason=str(e),
                )
            )


class MarkEntryProcessing(_EntryTransition):
    """Use Case: pending/failed -> processing"""

    failure_code = "MARK_PROCESSING_FAILED"

    async def execute(
        self, operator: Operator, command: MarkProcessingCommandDTO
    ) -> Result[LedgerEntryResponseDTO]:
        result = await self._transition(
            operator,
            command.entry_id,
            lambda entry: self.lifecycle.mark_processing(
                entry, operator.id, command.notes, command.expected_version
            ),
        )
        if result.is_err():
            return result
        return Return.ok(entry_to_dto(result.value[0]))


class MarkEntryCompleted(_EntryTransition):
    """Use Case: pending/processing -> completed, merging provider metadata"""

    failure_code = "MARK_COMPLETED_FAILED"

    async def execute(
        self, operator: Operator, command: MarkCompletedCommandDTO
    ) -> Result[LedgerEntryResponseDTO]:
        metadata = command.metadata.as_metadata() if command.metadata else None
        result = await self._transition(
            operator,
            command.entry_id,
            lambda entry: self.lifecycle.mark_completed(
                entry, operator.id, metadata, command.expected_version
            ),
        )
        if result.is_err():
            return result
        return Return.ok(entry_to_dto(result.value[0]))


class MarkEntryFailed(_EntryTransition):
    """
    Use Case: non-terminal -> failed

    A failure on an entry that already used up its retries is reported
    through the notification service after the write commits.
    """

    failure_code = "MARK_FAILED_FAILED"

    def __init__(
        self,
        uow: UnitOfWork,
        entry_repo: LedgerEntryRepository,
        notification_service: Optional[NotificationService] = None,
        lifecycle: Optional[LedgerLifecycle] = None,
    ):
        super().__init__(uow, entry_repo, lifecycle)
        self.notification_service = notification_service

    async def execute(
        self, operator: Operator, command: MarkFailedCommandDTO
    ) -> Result[LedgerEntryResponseDTO]:
        result = await self._transition(
            operator,
            command.entry_id,
            lambda entry: self.lifecycle.mark_failed(
                entry, command.reason, operator.id, command.expected_version
            ),
        )
        if result.is_err():
            return result

        entry, limit_exceeded = result.value
        if limit_exceeded and self.notification_service is not None:
            sent = await self.notification_service.send_retry_limit_alert(entry, command.reason)
            if not sent:
                logger.error(f"Retry-limit alert for ledger entry {entry.id} was not delivered")

        return Return.ok(entry_to_dto(entry))


class MarkEntryCancelled(_EntryTransition):
    """Use Case: pending/processing/failed -> cancelled"""

    failure_code = "MARK_CANCELLED_FAILED"

    async def execute(
        self, operator: Operator, command: MarkCancelledCommandDTO
    ) -> Result[LedgerEntryResponseDTO]:
        result = await self._transition(
            operator,
            command.entry_id,
            lambda entry: self.lifecycle.mark_cancelled(
                entry, operator.id, command.reason, command.expected_version
            ),
        )
        if result.is_err():
            return result
        return Return.ok(entry_to_dto(result.value[0]))
