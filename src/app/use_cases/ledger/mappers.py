"""Entity -> DTO conversion and shared error helpers for ledger use cases"""

from typing import Optional
from libs.result import Error
from src.domain.commission_record import CommissionRecord
from src.domain.errors import LedgerError
from src.domain.ledger_entry import LedgerEntry
from src.domain.operator import Operator, Permission
from .dtos import CommissionRecordDTO, LedgerEntryResponseDTO, ProcessingDetailsDTO


def entry_to_dto(entry: LedgerEntry) -> LedgerEntryResponseDTO:
    return LedgerEntryResponseDTO(
        id=entry.id,
        transaction_id=entry.transaction_id,
        user_id=entry.user_id,
        store_id=entry.store_id,
        order_id=entry.order_id,
        booking_id=entry.booking_id,
        amount=entry.amount,
        currency=entry.currency,
        formatted_amount=entry.formatted_amount,
        payment_method=entry.payment_method.value,
        payment_provider=entry.payment_provider.value,
        type=entry.type.value,
        status=entry.status.value,
        description=entry.description,
        metadata=dict(entry.payment_metadata or {}),
        processing_details=ProcessingDetailsDTO(
            attempted_at=entry.attempted_at,
            completed_at=entry.completed_at,
            failed_at=entry.failed_at,
            processed_by=entry.processed_by,
            admin_notes=entry.admin_notes,
        ),
        retry_count=entry.retry_count,
        can_retry=entry.can_retry,
        expires_at=entry.expires_at,
        version=entry.version,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def commission_to_dto(record: CommissionRecord) -> CommissionRecordDTO:
    return CommissionRecordDTO(
        id=record.id,
        store_id=record.store_id,
        order_id=record.order_id,
        booking_id=record.booking_id,
        type=record.type,
        total_amount=record.total_amount,
        commission_rate=record.commission_rate,
        commission_amount=record.commission_amount,
        store_amount=record.store_amount,
        currency=record.currency,
        status=record.status,
        created_at=record.created_at,
    )


def domain_error(e: LedgerError) -> Error:
    return Error(code=e.code, message=e.message, reason=type(e).__name__)


def forbidden(operator: Operator, permission: Permission) -> Optional[Error]:
    """Error if the operator lacks the permission, None otherwise"""
    if operator.can(permission):
        return None
    return Error(
        code="FORBIDDEN",
        message=f"Operator {operator.id} lacks permission {permission.value}",
        reason="Missing capability",
    )
