"""
Exact decimal money handling.

All amounts in the marketplace are Decimal values with two fractional
digits. Binary floats are refused at every entry point; values arriving
from JSON bodies, gateway payloads or the database are converted with
to_money() before any arithmetic.

Usage:
    from payments.money import to_money, percent_of

    amount = to_money("149.90")         # Decimal("149.90")
    fee = percent_of(amount, "20.00")   # Decimal("29.98")
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from payments.exceptions import InvalidAmountError

MoneyInput = Union[Decimal, int, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def _to_decimal(value: MoneyInput, label: str) -> Decimal:
    # bool is an int subclass; True/False are never amounts
    if isinstance(value, (bool, float)) or not isinstance(value, (Decimal, int, str)):
        raise InvalidAmountError(
            f"{label} must be a decimal string, integer or Decimal",
            details={"value": repr(value), "type": type(value).__name__},
        )
    try:
        result = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation:
        raise InvalidAmountError(
            f"{label} is not a valid number",
            details={"value": value},
        ) from None
    if not result.is_finite():
        raise InvalidAmountError(f"{label} must be finite", details={"value": str(value)})
    return result


def quantize_money(value: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: MoneyInput, *, label: str = "Amount") -> Decimal:
    """
    Parse a money value into a two-place Decimal.

    Raises:
        InvalidAmountError: For floats, unparsable input or sub-cent precision
    """
    result = _to_decimal(value, label)
    if result != result.quantize(CENT):
        raise InvalidAmountError(
            f"{label} has more than two decimal places",
            details={"value": str(value)},
        )
    return result.quantize(CENT)


def to_rate(value: MoneyInput) -> Decimal:
    """Parse a percentage rate such as "20.00"."""
    return _to_decimal(value, "Commission rate")


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Return ``rate`` percent of ``amount`` rounded half-up to cents."""
    return quantize_money(amount * rate / HUNDRED)
