"""Commission Record Domain Entity

Platform fee / store payout split for one paid order or booking.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, Numeric, String
from src.domain.base import BaseModel


class CommissionType(str, Enum):
    ORDER = "order"
    BOOKING = "booking"


class CommissionStatus(str, Enum):
    """Settlement status; advanced by the external settlement process"""
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class CommissionRecord(BaseModel, table=True):
    """
    Commission Record - derived, append-only split of a paid order/booking

    Domain Rules:
    - Exactly one of order_id / booking_id is set; type mirrors the choice
    - commission_amount + store_amount == total_amount
    - At most one record per order and per booking
    - Only status is mutable after creation
    """

    __tablename__ = "commission_records"
    __table_args__ = (
        CheckConstraint(
            '(order_id IS NULL) <> (booking_id IS NULL)',
            name='commission_single_reference'
        ),
        CheckConstraint('total_amount >= 0', name='commission_total_non_negative'),
        Index('ix_commission_records_store_status', 'store_id', 'status'),
        Index('ix_commission_records_created_at', 'created_at'),
    )

    # SQLite only auto-increments an INTEGER primary key
    id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
        ),
        description="Unique commission identifier (auto-increment)"
    )

    store_id: str = Field(
        index=True,
        description="Store receiving the payout"
    )

    order_id: Optional[str] = Field(
        default=None,
        unique=True,
        description="Paid order (mutually exclusive with booking_id)"
    )

    booking_id: Optional[str] = Field(
        default=None,
        unique=True,
        description="Paid booking (mutually exclusive with order_id)"
    )

    type: CommissionType = Field(
        description="Whether the record covers an order or a booking"
    )

    total_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Gross amount paid by the customer"
    )

    commission_rate: Decimal = Field(
        default=Decimal("0.07"),
        sa_column=Column(Numeric(5, 4), nullable=False),
        description="Platform commission rate as a fraction"
    )

    commission_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Platform fee"
    )

    store_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Store payout (total_amount - commission_amount)"
    )

    currency: str = Field(
        default="LKR",
        sa_column=Column(String(3), nullable=False, default="LKR"),
    )

    status: CommissionStatus = Field(
        default=CommissionStatus.PENDING,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_type=DateTime,
        description="Record creation timestamp"
    )

    @property
    def reference_id(self) -> Optional[str]:
        return self.order_id if self.type == CommissionType.ORDER else self.booking_id

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "store_id": "store_456",
                "order_id": "order_789",
                "type": "order",
                "total_amount": "1000.00",
                "commission_rate": "0.0700",
                "commission_amount": "70.00",
                "store_amount": "930.00",
                "currency": "LKR",
                "status": "pending",
                "created_at": "2024-01-01T00:00:00Z"
            }
        }
