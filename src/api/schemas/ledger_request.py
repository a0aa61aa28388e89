"""Request schemas for Ledger API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from src.app.use_cases.ledger.dtos import EntryMetadataDTO
from src.domain.ledger_entry import EntryType, PaymentMethod, PaymentProvider


def _check_amount(v: Decimal) -> Decimal:
    if v < 0:
        raise ValueError("Amount must not be negative")
    if v.as_tuple().exponent < -2:
        raise ValueError("Amount supports at most 2 decimal places")
    return v


class RecordPaymentRequestSchema(BaseModel):
    """
    Request schema for recording an order/booking payment

    Used for POST /ledger/payments endpoint.
    """

    user_id: str = Field(..., min_length=1, description="Paying customer")
    store_id: str = Field(..., min_length=1, description="Store receiving the order/booking")
    order_id: Optional[str] = Field(default=None, min_length=1)
    booking_id: Optional[str] = Field(default=None, min_length=1)
    transaction_id: str = Field(
        ..., min_length=1, max_length=255, description="Provider transaction id (unique)"
    )
    amount: Decimal = Field(..., description="Gross amount paid (>= 0)")
    currency: str = Field(default="LKR", min_length=3, max_length=3)
    payment_method: PaymentMethod
    payment_provider: PaymentProvider = PaymentProvider.STRIPE
    description: Optional[str] = Field(default=None, max_length=500)
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
    metadata: Optional[EntryMetadataDTO] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        return _check_amount(v)

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
                "payment_provider": "stripe",
                "metadata": {"payment_intent_id": "pi_3NxY2z"}
            }
        }


class CreateEntryRequestSchema(BaseModel):
    """
    Request schema for refund, payout and adjustment entries

    Used for POST /ledger/entries endpoint.
    """

    user_id: str = Field(..., min_length=1)
    store_id: str = Field(..., min_length=1)
    order_id: Optional[str] = None
    booking_id: Optional[str] = None
    transaction_id: str = Field(..., min_length=1, max_length=255)
    amount: Decimal
    currency: str = Field(default="LKR", min_length=3, max_length=3)
    payment_method: PaymentMethod
    payment_provider: PaymentProvider = PaymentProvider.STRIPE
    type: EntryType
    description: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[EntryMetadataDTO] = None
    expires_at: Optional[datetime] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        return _check_amount(v)

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v == EntryType.PAYMENT:
            raise ValueError("Payments are recorded through /ledger/payments")
        return v


class MarkProcessingRequestSchema(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = Field(default=None, ge=1)


class MarkCompletedRequestSchema(BaseModel):
    metadata: Optional[EntryMetadataDTO] = None
    expected_version: Optional[int] = Field(default=None, ge=1)


class MarkFailedRequestSchema(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000, description="Failure reason")
    expected_version: Optional[int] = Field(default=None, ge=1)

    class Config:
        json_schema_extra = {
            "example": {
                "reason": "Card declined by issuer",
                "expected_version": 2
            }
        }


class MarkCancelledRequestSchema(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)
    expected_version: Optional[int] = Field(default=None, ge=1)
