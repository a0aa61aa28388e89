"""Data Transfer Objects for Ledger Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator

from src.domain.commission_record import CommissionStatus, CommissionType
from src.domain.ledger_entry import EntryStatus, EntryType, PaymentMethod, PaymentProvider


class EntryMetadataDTO(BaseModel):
    """
    Known provider response fields stored on a ledger entry

    Anything provider-specific that has no dedicated key goes into
    ``provider_response``; other keys are rejected.
    """

    payment_intent_id: Optional[str] = Field(default=None, max_length=255)
    charge_id: Optional[str] = Field(default=None, max_length=255)
    refund_id: Optional[str] = Field(default=None, max_length=255)
    failure_reason: Optional[str] = Field(default=None, max_length=1000)
    provider_response: Optional[Dict[str, Any]] = None

    class Config:
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "payment_intent_id": "pi_3NxY2z",
                "charge_id": "ch_3NxY2z",
                "provider_response": {"status": "succeeded"}
            }
        }

    def as_metadata(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RecordPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording an order/booking payment

    Used as input to RecordPayment. Exactly one of order_id / booking_id.
    Amount is checked by the commission calculator, not here, so a negative
    amount surfaces as INVALID_AMOUNT.
    """

    user_id: str = Field(..., description="Paying customer")
    store_id: str = Field(..., description="Store receiving the order/booking")
    order_id: Optional[str] = Field(default=None)
    booking_id: Optional[str] = Field(default=None)
    transaction_id: str = Field(..., description="Provider transaction id (unique)")
    amount: Decimal = Field(..., description="Gross amount paid")
    currency: str = Field(default="LKR")
    payment_method: PaymentMethod
    payment_provider: PaymentProvider = PaymentProvider.STRIPE
    description: Optional[str] = Field(default=None, max_length=500)
    commission_rate: Optional[Decimal] = Field(
        default=None, description="Overrides the platform default rate"
    )
    metadata: Optional[EntryMetadataDTO] = None

    @model_validator(mode="after")
    def check_single_reference(self):
        if (self.order_id is None) == (self.booking_id is None):
            raise ValueError("Exactly one of order_id or booking_id is required")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_123",
                "store_id": "store_456",
                "order_id": "order_789",
                "transaction_id": "pi_3NxY2z",
                "amount": "1000.00",
                "currency": "LKR",
                "payment_method": "card",
                "payment_provider": "stripe"
            }
        }


class CreateEntryCommandDTO(BaseModel):
    """
    Command DTO for recording a ledger entry without a commission

    Used for refunds, payouts and adjustments.
    """

    user_id: str
    store_id: str
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    transaction_id: str
    amount: Decimal
    currency: str = "LKR"
    payment_method: PaymentMethod
    payment_provider: PaymentProvider = PaymentProvider.STRIPE
    type: EntryType
    description: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[EntryMetadataDTO] = None
    expires_at: Optional[datetime] = None


class MarkProcessingCommandDTO(BaseModel):
    entry_id: str
    notes: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = None


class MarkCompletedCommandDTO(BaseModel):
    entry_id: str
    metadata: Optional[EntryMetadataDTO] = None
    expected_version: Optional[int] = None


class MarkFailedCommandDTO(BaseModel):
    entry_id: str
    reason: str = Field(..., min_length=1, max_length=1000)
    expected_version: Optional[int] = None


class MarkCancelledCommandDTO(BaseModel):
    entry_id: str
    reason: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = None


class ProcessingDetailsDTO(BaseModel):
    attempted_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    admin_notes: Optional[str] = None


class LedgerEntryResponseDTO(BaseModel):
    """
    Response DTO for a ledger entry

    Returned by every ledger use case that reads or writes a single entry.
    """

    id: str
    transaction_id: str
    user_id: str
    store_id: str
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    amount: Decimal
    currency: str
    formatted_amount: str
    payment_method: str
    payment_provider: str
    type: str
    status: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    processing_details: ProcessingDetailsDTO
    retry_count: int
    can_retry: bool
    expires_at: Optional[datetime] = None
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5f0c2b1e-8a0d-4a55-9d5c-3b7d4f0f2a11",
                "transaction_id": "pi_3NxY2z",
                "user_id": "user_123",
                "store_id": "store_456",
                "order_id": "order_789",
                "amount": "1000.00",
                "currency": "LKR",
                "formatted_amount": "LKR 1,000.00",
                "payment_method": "card",
                "payment_provider": "stripe",
                "type": "payment",
                "status": "processing",
                "metadata": {},
                "processing_details": {
                    "attempted_at": "2024-01-01T00:10:00Z",
                    "processed_by": "admin_1"
                },
                "retry_count": 0,
                "can_retry": False,
                "expires_at": "2024-01-02T00:00:00Z",
                "version": 2,
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:10:00Z"
            }
        }


class CommissionRecordDTO(BaseModel):
    id: int
    store_id: str
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    type: CommissionType
    total_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    store_amount: Decimal
    currency: str
    status: CommissionStatus
    created_at: datetime


class RecordPaymentResponseDTO(BaseModel):
    entry: LedgerEntryResponseDTO
    commission: CommissionRecordDTO
    commission_created: bool = Field(
        ..., description="False when the order/booking already had a commission record"
    )


class ListLedgerEntriesResponseDTO(BaseModel):
    entries: List[LedgerEntryResponseDTO]
    total: int
    limit: int
    offset: int


class StatusCountDTO(BaseModel):
    count: int
    total_amount: Decimal


class StatusCountsResponseDTO(BaseModel):
    statuses: Dict[EntryStatus, StatusCountDTO]
    total_count: int
    total_amount: Decimal

    class Config:
        json_schema_extra = {
            "example": {
                "statuses": {
                    "pending": {"count": 2, "total_amount": "200.00"},
                    "completed": {"count": 1, "total_amount": "50.00"}
                },
                "total_count": 3,
                "total_amount": "250.00"
            }
        }


class RecentFailuresResponseDTO(BaseModel):
    window_hours: int
    count: int
    entries: List[LedgerEntryResponseDTO]


class ListCommissionsResponseDTO(BaseModel):
    records: List[CommissionRecordDTO]
    limit: int
    offset: int


class CommissionOverallStatsDTO(BaseModel):
    total_commissions: Decimal
    total_transactions: int
    avg_commission: Decimal


class CommissionMonthlyStatsDTO(BaseModel):
    monthly_commissions: Decimal
    monthly_transactions: int


class CommissionStatsResponseDTO(BaseModel):
    overall: CommissionOverallStatsDTO
    monthly: CommissionMonthlyStatsDTO
    month_start: datetime


class StorePayoutRowDTO(BaseModel):
    store_id: str
    status: CommissionStatus
    count: int
    total_amount: Decimal
    commission_amount: Decimal
    store_amount: Decimal


class StorePayoutSummaryResponseDTO(BaseModel):
    store_id: Optional[str] = None
    rows: List[StorePayoutRowDTO]


class PayoutStatementResponseDTO(BaseModel):
    store_id: str
    record_count: int
    pdf_base64: str
    generated_at: datetime


class CommissionDiscrepancyDTO(BaseModel):
    kind: str = Field(..., description="missing_commission | orphan_commission")
    store_id: str
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: Decimal
    repaired: bool = False


class ReconciliationResultDTO(BaseModel):
    entries_checked: int
    commissions_checked: int
    discrepancies_found: int
    repaired: int
    discrepancies: List[CommissionDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int


class PurgeExpiredResultDTO(BaseModel):
    deleted: int
    swept_at: datetime
