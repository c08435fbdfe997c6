"""
Commission calculator.

Splits a gross amount into the platform's commission and the seller's
payout. The commission is rounded half-up to the cent and the payout is
the exact remainder, so the two always sum to the gross amount.

Usage:
    from payments.commission import calculate_commission

    breakdown = calculate_commission(Decimal("100.00"), Decimal("20.00"))
    breakdown.commission_amount  # Decimal("20.00")
    breakdown.seller_payout      # Decimal("80.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payments.exceptions import InvalidAmountError, InvalidCommissionRateError
from payments.money import HUNDRED, MoneyInput, percent_of, to_money, to_rate


@dataclass(frozen=True)
class CommissionBreakdown:
    """Result of splitting a gross amount."""

    gross_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    seller_payout: Decimal


def calculate_commission(
    gross_amount: MoneyInput,
    commission_rate: MoneyInput,
) -> CommissionBreakdown:
    """
    Split ``gross_amount`` at ``commission_rate`` percent.

    A zero gross amount is allowed: it is what remains for the seller
    after a full refund.

    Raises:
        InvalidAmountError: If the gross amount is negative or malformed
        InvalidCommissionRateError: If the rate is outside 0-100
    """
    gross = to_money(gross_amount, label="Gross amount")
    rate = to_rate(commission_rate)

    if gross < 0:
        raise InvalidAmountError(
            "Gross amount cannot be negative",
            details={"gross_amount": str(gross)},
        )
    if rate < 0 or rate > HUNDRED:
        raise InvalidCommissionRateError(
            "Commission rate must be between 0 and 100",
            details={"commission_rate": str(rate)},
        )

    commission = percent_of(gross, rate)
    return CommissionBreakdown(
        gross_amount=gross,
        commission_rate=rate,
        commission_amount=commission,
        seller_payout=gross - commission,
    )
