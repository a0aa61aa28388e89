"""Ledger API Routes

FastAPI routes for recording ledger entries, moving them through their
lifecycle and reading ledger reports.
"""

from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from libs.result import Error
from src.api.schemas.ledger_request import (
    RecordPaymentRequestSchema,
    CreateEntryRequestSchema,
    MarkProcessingRequestSchema,
    MarkCompletedRequestSchema,
    MarkFailedRequestSchema,
    MarkCancelledRequestSchema,
)
from src.app.repositories.ledger_entry_repository import LedgerEntryFilter
from src.app.use_cases.ledger import (
    RecordPayment,
    CreateLedgerEntry,
    MarkEntryProcessing,
    MarkEntryCompleted,
    MarkEntryFailed,
    MarkEntryCancelled,
    GetLedgerEntry,
    ListLedgerEntries,
    GetStatusCounts,
    GetRecentFailures,
    RecordPaymentCommandDTO,
    CreateEntryCommandDTO,
    MarkProcessingCommandDTO,
    MarkCompletedCommandDTO,
    MarkFailedCommandDTO,
    MarkCancelledCommandDTO,
    LedgerEntryResponseDTO,
    RecordPaymentResponseDTO,
    ListLedgerEntriesResponseDTO,
    StatusCountsResponseDTO,
    RecentFailuresResponseDTO,
)
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.repositories.commission_record_repository import SqlAlchemyCommissionRecordRepository
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.ledger_entry import EntryStatus, EntryType
from src.domain.operator import Operator
from src.depends import get_session, get_operator
from src.api.error import ClientError

router = APIRouter(prefix="/ledger", tags=["Ledger"])

ERROR_STATUS = {
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "ENTRY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "DUPLICATE_TRANSACTION_ID": status.HTTP_409_CONFLICT,
    "INVALID_TRANSITION": status.HTTP_409_CONFLICT,
    "COMMISSION_MISMATCH": status.HTTP_409_CONFLICT,
    "STALE_WRITE": status.HTTP_409_CONFLICT,
    "INVALID_AMOUNT": status.HTTP_400_BAD_REQUEST,
}

ERROR_RESPONSES = {
    403: {
        "description": "Operator lacks the required permission",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "FORBIDDEN",
                        "message": "Operator admin_1 lacks permission ledger:write"
                    }
                }
            }
        }
    },
    409: {
        "description": "Duplicate transaction id, invalid transition, stale write or commission mismatch",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "STALE_WRITE",
                        "message": "Ledger entry 5f0c2b1e was modified concurrently"
                    }
                }
            }
        }
    },
}


def raise_for_error(error: Error):
    """Map a use-case error to its HTTP status and raise it"""
    code = error.code
    if code not in ERROR_STATUS and code.endswith("_FAILED"):
        raise ClientError(error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    raise ClientError(error, status_code=ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST))


def _entry_repo(session: AsyncSession) -> SqlAlchemyLedgerEntryRepository:
    return SqlAlchemyLedgerEntryRepository(
        session,
        payment_expiry_hours=ApplicationConfig.PAYMENT_EXPIRY_HOURS,
        non_payment_expiry_hours=ApplicationConfig.NON_PAYMENT_EXPIRY_HOURS,
    )


@router.post(
    "/payments",
    response_model=RecordPaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def record_payment(
    request: RecordPaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Record an order or booking payment.

    Creates the pending payment entry and the order/booking commission record
    in one transaction. A payment retried for an order that already has a
    commission record reuses that record (`commission_created: false`).

    **Returns:**
    - 201: Entry and commission recorded
    - 400: Invalid amount or commission rate
    - 403: Operator lacks ledger:write
    - 409: transaction_id already recorded
    - 409: Existing commission disagrees with this payment (store, amount or currency)
    """
    uow = SqlAlchemyUnitOfWork(session)
    command = RecordPaymentCommandDTO(**request.model_dump(exclude={"metadata"}), metadata=request.metadata)

    use_case = RecordPayment(
        uow,
        _entry_repo(session),
        SqlAlchemyCommissionRecordRepository(session),
        default_commission_rate=Decimal(str(ApplicationConfig.DEFAULT_COMMISSION_RATE)),
    )
    result = await use_case.execute(operator, command)

    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/entries",
    response_model=LedgerEntryResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_entry(
    request: CreateEntryRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Record a refund, payout or adjustment entry (no commission).

    **Returns:**
    - 201: Entry recorded as pending
    - 403: Operator lacks ledger:write
    - 409: transaction_id already recorded
    """
    uow = SqlAlchemyUnitOfWork(session)
    command = CreateEntryCommandDTO(**request.model_dump(exclude={"metadata"}), metadata=request.metadata)

    result = await CreateLedgerEntry(uow, _entry_repo(session)).execute(operator, command)

    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/entries", response_model=ListLedgerEntriesResponseDTO, responses=ERROR_RESPONSES)
async def list_entries(
    status_filter: Optional[EntryStatus] = Query(default=None, alias="status"),
    type_filter: Optional[EntryType] = Query(default=None, alias="type"),
    user_id: Optional[str] = None,
    store_id: Optional[str] = None,
    order_id: Optional[str] = None,
    booking_id: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """List ledger entries, newest first."""
    filters = LedgerEntryFilter(
        status=status_filter,
        type=type_filter,
        user_id=user_id,
        store_id=store_id,
        order_id=order_id,
        booking_id=booking_id,
    )
    result = await ListLedgerEntries(_entry_repo(session)).execute(
        operator, filters, limit=limit, offset=offset
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/status-counts", response_model=StatusCountsResponseDTO, responses=ERROR_RESPONSES)
async def get_status_counts(
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Count and amount total per entry status.

    Only statuses that currently have entries are included.
    """
    result = await GetStatusCounts(_entry_repo(session)).execute(operator)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/recent-failures", response_model=RecentFailuresResponseDTO, responses=ERROR_RESPONSES)
async def get_recent_failures(
    hours: int = Query(default=ApplicationConfig.RECENT_FAILURES_WINDOW_HOURS, ge=1, le=720),
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """Failed entries updated within the last `hours`, newest first."""
    result = await GetRecentFailures(_entry_repo(session)).execute(operator, window_hours=hours)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get(
    "/transactions/{transaction_id}",
    response_model=LedgerEntryResponseDTO,
    responses=ERROR_RESPONSES,
)
async def get_entry_by_transaction_id(
    transaction_id: str,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """Look up an entry by its provider transaction id."""
    result = await GetLedgerEntry(_entry_repo(session)).execute(
        operator, transaction_id=transaction_id
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.get("/entries/{entry_id}", response_model=LedgerEntryResponseDTO, responses=ERROR_RESPONSES)
async def get_entry(
    entry_id: str,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    result = await GetLedgerEntry(_entry_repo(session)).execute(operator, entry_id=entry_id)
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/entries/{entry_id}/processing",
    response_model=LedgerEntryResponseDTO,
    responses=ERROR_RESPONSES,
)
async def mark_processing(
    entry_id: str,
    request: MarkProcessingRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Move a pending or failed entry to processing.

    Send `expected_version` to reject the write if someone else changed the
    entry since it was read (409 STALE_WRITE).
    """
    use_case = MarkEntryProcessing(SqlAlchemyUnitOfWork(session), _entry_repo(session))
    result = await use_case.execute(
        operator, MarkProcessingCommandDTO(entry_id=entry_id, **request.model_dump())
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/entries/{entry_id}/completed",
    response_model=LedgerEntryResponseDTO,
    responses=ERROR_RESPONSES,
)
async def mark_completed(
    entry_id: str,
    request: MarkCompletedRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """Complete a pending or processing entry, merging provider metadata."""
    use_case = MarkEntryCompleted(SqlAlchemyUnitOfWork(session), _entry_repo(session))
    result = await use_case.execute(
        operator,
        MarkCompletedCommandDTO(
            entry_id=entry_id,
            metadata=request.metadata,
            expected_version=request.expected_version,
        ),
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/entries/{entry_id}/failed",
    response_model=LedgerEntryResponseDTO,
    responses=ERROR_RESPONSES,
)
async def mark_failed(
    entry_id: str,
    request: MarkFailedRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    """
    Record a failed processing attempt.

    retry_count stops at 5; a failure beyond that raises a retry-limit alert.
    """
    use_case = MarkEntryFailed(
        SqlAlchemyUnitOfWork(session),
        _entry_repo(session),
        notification_service=create_notification_service(
            ApplicationConfig.NOTIFICATION_WEBHOOK_URL
        ),
    )
    result = await use_case.execute(
        operator, MarkFailedCommandDTO(entry_id=entry_id, **request.model_dump())
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value


@router.post(
    "/entries/{entry_id}/cancelled",
    response_model=LedgerEntryResponseDTO,
    responses=ERROR_RESPONSES,
)
async def mark_cancelled(
    entry_id: str,
    request: MarkCancelledRequestSchema,
    session: AsyncSession = Depends(get_session),
    operator: Operator = Depends(get_operator),
):
    use_case = MarkEntryCancelled(SqlAlchemyUnitOfWork(session), _entry_repo(session))
    result = await use_case.execute(
        operator, MarkCancelledCommandDTO(entry_id=entry_id, **request.model_dump())
    )
    if result.is_err():
        raise_for_error(result.error)
    return result.value
