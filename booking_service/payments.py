"""
Commission and worker payout calculation.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple

from .config import COMMISSION_RATE
from .errors import ValidationError

WHOLE_UNIT = Decimal("1")
CENTS = Decimal("0.01")
# commission_rate column is Numeric(5, 4)
RATE_PLACES = Decimal("0.0001")


class Payments(NamedTuple):
    total_amount: Decimal
    commission: Decimal
    worker_payout: Decimal
    commission_rate: Decimal


def to_decimal(value, field: str) -> Decimal:
    """Coerce ints, floats, strings and Decimals; reject NaN and infinities."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return amount


def calculate_payments(final_amount, commission_rate=COMMISSION_RATE) -> Payments:
    """
    Split a final amount between the platform and the worker.

    The commission is rounded half-up to a whole currency unit and the worker
    receives the remainder, so commission + worker_payout == final_amount.

    Args:
        final_amount: Agreed total for the booking
        commission_rate: Platform cut, between 0 and 1, kept to four decimal places

    Returns:
        Payments(total_amount, commission, worker_payout, commission_rate)
    """
    total = to_decimal(final_amount, "final_amount")
    rate = to_decimal(commission_rate, "commission_rate")

    if total < 0:
        raise ValidationError("final_amount cannot be negative", field="final_amount")
    if rate < 0 or rate > 1:
        raise ValidationError("commission_rate must be between 0 and 1", field="commission_rate")

    total = total.quantize(CENTS, rounding=ROUND_HALF_UP)
    rate = rate.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)
    commission = (total * rate).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP).quantize(CENTS)
    return Payments(
        total_amount=total,
        commission=commission,
        worker_payout=total - commission,
        commission_rate=rate,
    )
