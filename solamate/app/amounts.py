"""
amounts.py: Decimal helpers shared by the ledger, the services and the schemas.

Monetary values are Decimal everywhere. A binary float handed to to_amount()
is converted through its repr, so 0.1 enters the ledger as Decimal("0.1")
and not as 0.1000000000000000055511151231257827.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

ZERO = Decimal("0")

# Distance from zero below which a balance counts as settled.
DEFAULT_TOLERANCE = Decimal("0.001")

# 9 places = one lamport when amounts are denominated in SOL.
DEFAULT_AMOUNT_PLACES = 9


def to_amount(value) -> Decimal:
    """
    Converts int, str, float or Decimal to a finite Decimal.

    Raises ValueError for booleans, unparsable strings, NaN and infinities.
    The sign is not checked here; the ledger decides what is allowed.
    """
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a valid amount.")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"{value!r} is not a valid amount.") from None
    if not amount.is_finite():
        raise ValueError(f"{value!r} is not a finite amount.")
    return amount


def is_settled(balance: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> bool:
    """True when `balance` is within `tolerance` of zero."""
    return abs(balance) <= tolerance


def decimal_places(value: Decimal) -> int:
    """
    Number of digits after the decimal point as written.

    Decimal("10.120").as_tuple().exponent == -3  -> 3
    Decimal("10").as_tuple().exponent     ==  0  -> 0
    """
    exponent = value.as_tuple().exponent
    return -exponent if exponent < 0 else 0


def quantize_amount(amount: Decimal, places: int = DEFAULT_AMOUNT_PLACES) -> Decimal:
    """Rounds `amount` half-even to `places` decimal places."""
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN)


def format_amount(amount: Decimal, places: int = DEFAULT_AMOUNT_PLACES) -> str:
    """
    Renders an amount as a plain decimal string for JSON and terminal output.

    The value is rounded to `places`, trailing zeros are dropped and negative
    zero is folded into zero:

        Decimal("50")                        -> "50"
        Decimal("33.33333333333333333333")   -> "33.333333333"
        Decimal("-0.0000000000001")          -> "0"
    """
    rounded = quantize_amount(amount, places)
    if rounded == ZERO:
        return "0"
    return format(rounded.normalize(), "f")
