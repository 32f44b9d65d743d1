"""
tests/test_fees.py — Platform fee calculation.

The fee must stay within [0, amount] for every sane schedule, and the
percentage part rounds half-up at whole minor units.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from payments_core import InvalidInput, compute_fee


@pytest.mark.parametrize(
    "amount, percent, flat, expected",
    [
        (1000, 0, 0, 0),
        (1000, 10, 0, 100),
        (1000, 0, 50, 50),
        (1000, 200, 0, 1000),
        (1000, 2.5, 100, 125),
        (999, Decimal("1.5"), 0, 15),  # 14.985 -> 15
        (150, 1, 0, 2),  # 1.5 rounds half-up
        (50, 1, 0, 1),  # 0.5 rounds half-up
        (49, 1, 0, 0),
        (100, 0, 5000, 100),  # flat alone exceeds the charge
        (1000, None, None, 0),
        (1000, "7.5", "10", 85),
    ],
)
def test_compute_fee(amount: int, percent: object, flat: object, expected: int) -> None:
    assert compute_fee(amount, percent, flat) == expected


def test_fee_always_within_amount_bounds() -> None:
    for amount in (1, 2, 7, 99, 100, 101, 12345, 10_000_000):
        for percent in (0, 0.5, 1, 2.5, 33.333, 50, 99.99, 100):
            for flat in (0, 1, 30, 250, 10**9):
                fee = compute_fee(amount, percent, flat)
                assert 0 <= fee <= amount


@pytest.mark.parametrize("amount", [0, -1, 10.0, True, "100", None])
def test_invalid_amount_rejected(amount: object) -> None:
    with pytest.raises(InvalidInput):
        compute_fee(amount, 10, 0)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "percent, flat",
    [("abc", 0), (0, "x"), (float("nan"), 0), (True, 0)],
)
def test_invalid_fee_schedule_rejected(percent: object, flat: object) -> None:
    with pytest.raises(InvalidInput):
        compute_fee(1000, percent, flat)


@pytest.mark.parametrize(
    "percent, flat, expected",
    [
        (-1, 0, 0),
        (0, -5, 0),
        (10, -30, 70),
        (-10, 500, 400),
        (Decimal("-2.5"), -100, 0),
    ],
)
def test_negative_fee_components_are_clamped(
    percent: object, flat: object, expected: int
) -> None:
    assert compute_fee(1000, percent, flat) == expected
