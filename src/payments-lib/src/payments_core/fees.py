"""
payments_core.fees — Platform application fee calculation.

All amounts are integer minor currency units (øre, cents).  No sub-unit
precision is carried: the percentage part is rounded half-up to a whole
minor unit before the flat part is added.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from aws_lambda_powertools import Logger

from payments_core.exceptions import InvalidInput

logger = Logger(service="payments-core")

_HUNDRED = Decimal(100)


def _as_decimal(value: Any, *, field: str) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"{field} must be a number") from exc
    if not result.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    return result


def compute_fee(amount: int, fee_percent: Any = None, fee_flat: Any = None) -> int:
    """Return the platform fee for a charge of `amount` minor units.

    fee = round_half_up(amount * fee_percent / 100) + fee_flat, clamped to
    [0, amount] so a misconfigured schedule can neither exceed nor negate
    the charge.  None for either fee component counts as 0 and negative
    components are absorbed by the clamp.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidInput("amount must be a positive integer")

    percent = _as_decimal(fee_percent, field="platform_fee_percent")
    flat = _as_decimal(fee_flat, field="platform_fee_flat")
    if percent < 0 or flat < 0:
        logger.warning(
            "Negative fee schedule clamped",
            platform_fee_percent=str(percent),
            platform_fee_flat=str(flat),
        )

    percent_part = (Decimal(amount) * percent / _HUNDRED).quantize(
        Decimal(1), rounding=ROUND_HALF_UP
    )
    fee = int(percent_part) + int(flat.to_integral_value(rounding=ROUND_HALF_UP))
    return max(0, min(amount, fee))
