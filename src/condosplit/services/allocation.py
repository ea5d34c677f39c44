from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Hashable, Iterable, TypeVar

K = TypeVar("K", bound=Hashable)

CENT = Decimal("0.01")
REMAINDER_TOLERANCE = Decimal("0.001")


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    try:
        # floats go through str so 0.1 stays 0.1 instead of its binary expansion
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return result


def round2(value: int | float | str | Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _take_overshoot(shares: dict[K, Decimal], exact: dict[K, Decimal], overshoot: Decimal) -> None:
    # one cent per pass, largest exact share first, never below zero
    order = sorted(exact, key=exact.__getitem__, reverse=True)
    while overshoot > 0:
        for key in order:
            if overshoot <= 0:
                break
            if shares[key] >= CENT:
                shares[key] -= CENT
                overshoot -= CENT


def allocate(weights: Iterable[tuple[K, int | float | str | Decimal]], amount: int | float | str | Decimal) -> dict[K, Decimal]:
    """Split ``amount`` proportionally to ``weights``.

    Every share is rounded to cents and the shares always add up to
    ``round2(amount)`` as long as one weight is positive. A missing cent
    lands on the largest unrounded share; ties go to the first key seen.
    When rounding overshoots, the extra cents are taken back one at a time
    from the largest shares down, so no share of a non-negative amount
    goes below zero. Repeated keys keep their first position and their
    last value.

    With a zero total weight every key gets ``0.00``.
    """
    values: dict[K, Decimal] = {}
    for key, raw in weights:
        value = to_decimal(raw)
        if value < 0:
            raise ValueError("weights must be non-negative")
        values[key] = value

    total_weight = sum(values.values(), Decimal(0))
    if not total_weight:
        return {key: Decimal("0.00") for key in values}

    target = round2(amount)
    exact_amount = to_decimal(amount)
    exact = {key: value / total_weight * exact_amount for key, value in values.items()}
    shares = {key: share.quantize(CENT, rounding=ROUND_HALF_UP) for key, share in exact.items()}

    remainder = target - sum(shares.values(), Decimal(0))
    if abs(remainder) <= REMAINDER_TOLERANCE:
        return shares

    if remainder < 0 and target >= 0:
        _take_overshoot(shares, exact, -remainder)
        return shares

    largest = None
    for key, share in exact.items():
        if largest is None or share > exact[largest]:
            largest = key
    assert largest is not None
    shares[largest] += remainder
    return shares
