"""Commission split calculation

Pure arithmetic, no persistence. The store payout is always derived as the
remainder of the rounded platform fee so that the two halves add up to the
total exactly.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple, Optional, Union
from src.domain.errors import InvalidAmount

DEFAULT_COMMISSION_RATE = Decimal("0.07")
CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


class CommissionSplit(NamedTuple):
    total_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    store_amount: Decimal


def to_decimal(value: Number, field: str = "amount") -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be numeric, got {value!r}")
    try:
        # floats go through str() so 0.07 stays 0.07
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{field} must be numeric, got {value!r}")
    if not result.is_finite():
        raise InvalidAmount(f"{field} must be finite, got {value!r}")
    return result


def calculate_commission(
    total_amount: Number,
    commission_rate: Optional[Number] = None,
) -> CommissionSplit:
    """
    Split a gross amount into platform commission and store payout

    Args:
        total_amount: Gross amount paid (must be >= 0)
        commission_rate: Fraction in [0, 1], defaults to 0.07

    Returns:
        CommissionSplit with commission rounded half-up to cents and the
        store amount as the exact remainder

    Raises:
        InvalidAmount: negative/non-numeric amount or rate outside [0, 1]
    """
    total = to_decimal(total_amount, "total_amount")
    if total < 0:
        raise InvalidAmount(f"total_amount must be >= 0, got {total}")

    rate = DEFAULT_COMMISSION_RATE if commission_rate is None else to_decimal(
        commission_rate, "commission_rate"
    )
    if rate < 0 or rate > 1:
        raise InvalidAmount(f"commission_rate must be between 0 and 1, got {rate}")

    commission_amount = (total * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    store_amount = total - commission_amount

    return CommissionSplit(
        total_amount=total,
        commission_rate=rate,
        commission_amount=commission_amount,
        store_amount=store_amount,
    )
