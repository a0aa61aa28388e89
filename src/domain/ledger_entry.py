"""Ledger Entry Domain Entity

One payment, refund, payout or adjustment attempt and its processing state.
Entries are created pending, moved through the lifecycle by operators or the
settlement flow, and evicted by the storage layer once ``expires_at`` passes.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, DateTime, Integer, JSON, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    DIGITAL_WALLET = "digital_wallet"
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentProvider(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    RAZORPAY = "razorpay"
    BANK = "bank"
    MANUAL = "manual"


class EntryType(str, Enum):
    """Ledger entry types"""
    PAYMENT = "payment"        # Customer payment for an order or booking
    REFUND = "refund"          # Money returned to the customer
    PAYOUT = "payout"          # Store payout
    ADJUSTMENT = "adjustment"  # Manual operator correction


class EntryStatus(str, Enum):
    """Ledger entry processing status"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"          # Retryable
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


TERMINAL_STATUSES = frozenset(
    {EntryStatus.COMPLETED, EntryStatus.CANCELLED, EntryStatus.REFUNDED}
)

PAYMENT_EXPIRY_HOURS = 24
NON_PAYMENT_EXPIRY_HOURS = 72
MAX_RETRY_COUNT = 5

# Optimistic concurrency token: SQLAlchemy adds "WHERE version = :old" to
# every UPDATE and raises StaleDataError when the row moved on.
_version_column = Column("version", Integer, nullable=False, default=1)

# Timestamps are stored as naive UTC; every datetime column sets sa_type=DateTime.


class LedgerEntry(BaseModel, table=True):
    """
    Ledger Entry - a pending transaction owned by the payment flow

    Domain Rules:
    - transaction_id is provider-assigned and unique
    - amount is non-negative
    - retry_count stays within 0..MAX_RETRY_COUNT
    - expires_at is assigned once at creation and never recomputed
    - Status changes only through the lifecycle (src.domain.ledger_lifecycle)
    - Every write bumps version; stale writes are rejected
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint('amount >= 0', name='ledger_amount_non_negative'),
        CheckConstraint(
            'retry_count >= 0 AND retry_count <= 5', name='ledger_retry_count_range'
        ),
        Index('ix_ledger_entries_created_at', 'created_at'),
        Index('ix_ledger_entries_status_created', 'status', 'created_at'),
        Index('ix_ledger_entries_user_status', 'user_id', 'status'),
        Index('ix_ledger_entries_store_status', 'store_id', 'status'),
    )
    __mapper_args__ = {"version_id_col": _version_column}

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Opaque entry identifier"
    )

    transaction_id: str = Field(
        unique=True,
        index=True,
        description="Provider-assigned transaction identifier (unique)"
    )

    user_id: str = Field(
        index=True,
        description="Customer that initiated the transaction"
    )

    store_id: str = Field(
        index=True,
        description="Store the transaction belongs to"
    )

    order_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Order paid by this transaction (if any)"
    )

    booking_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Booking paid by this transaction (if any)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Transaction amount (precision: 18,2)"
    )

    currency: str = Field(
        default="LKR",
        sa_column=Column(String(3), nullable=False, default="LKR"),
        description="ISO currency code (upper case)"
    )

    payment_method: PaymentMethod = Field(
        description="How the customer pays"
    )

    payment_provider: PaymentProvider = Field(
        default=PaymentProvider.STRIPE,
        description="Provider that processes the payment"
    )

    type: EntryType = Field(
        index=True,
        description="Entry type (payment, refund, payout, adjustment)"
    )

    status: EntryStatus = Field(
        default=EntryStatus.PENDING,
        index=True,
        description="Current processing status"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Free text description (max 500 chars)"
    )

    payment_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Provider response fields (see EntryMetadataDTO for known keys)"
    )

    attempted_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime,
        description="When processing was last attempted"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime,
        description="When the entry completed"
    )

    failed_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime,
        description="When the entry last failed"
    )

    processed_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Operator that last acted on the entry"
    )

    admin_notes: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1000), nullable=True),
        description="Operator notes (max 1000 chars)"
    )

    retry_count: int = Field(
        default=0,
        description="Failed processing attempts, capped at MAX_RETRY_COUNT"
    )

    expires_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime,
        index=True,
        description="Eviction deadline, assigned once at creation"
    )

    version: int = Field(
        default=1,
        sa_column=_version_column,
        description="Optimistic concurrency counter"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime,
        description="Entry creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime,
        description="Last write timestamp"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def can_retry(self) -> bool:
        return self.status == EntryStatus.FAILED and self.retry_count < MAX_RETRY_COUNT

    @property
    def formatted_amount(self) -> str:
        return f"{self.currency or 'LKR'} {Decimal(self.amount):,.2f}"

    def assign_expiry(
        self,
        payment_hours: int = PAYMENT_EXPIRY_HOURS,
        other_hours: int = NON_PAYMENT_EXPIRY_HOURS,
    ) -> datetime:
        """
        Set expires_at relative to created_at unless already set

        Payments expire after ``payment_hours``; refunds, payouts and
        adjustments after ``other_hours``.
        """
        if self.expires_at is None:
            hours = payment_hours if self.type == EntryType.PAYMENT else other_hours
            self.expires_at = self.created_at + timedelta(hours=hours)
        return self.expires_at

    def time_elapsed(self, now: Optional[datetime] = None) -> str:
        """Age of the entry as "12m ago", "3h ago" or "2d ago"."""
        now = now or datetime.utcnow()
        minutes = int((now - self.created_at).total_seconds() // 60)
        if minutes < 60:
            return f"{minutes}m ago"
        if minutes < 1440:
            return f"{minutes // 60}h ago"
        return f"{minutes // 1440}d ago"

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "5f0c2b1e-8a0d-4a55-9d5c-3b7d4f0f2a11",
                "transaction_id": "pi_3NxY2z",
                "user_id": "user_123",
                "store_id": "store_456",
                "order_id": "order_789",
                "amount": "1000.00",
                "currency": "LKR",
                "payment_method": "card",
                "payment_provider": "stripe",
                "type": "payment",
                "status": "pending",
                "retry_count": 0,
                "version": 1,
                "created_at": "2024-01-01T00:00:00Z",
                "expires_at": "2024-01-02T00:00:00Z"
            }
        }
