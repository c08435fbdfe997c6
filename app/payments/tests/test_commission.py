"""
Tests for the commission calculator.
"""

from decimal import Decimal

import pytest

from payments.commission import calculate_commission
from payments.exceptions import InvalidAmountError, InvalidCommissionRateError


class TestCalculateCommission:
    def test_standard_split(self):
        """
        Given 100.00 at 20%
        When split
        Then the platform keeps 20.00 and the seller gets 80.00
        """
        split = calculate_commission("100.00", "20.00")

        assert split.commission_amount == Decimal("20.00")
        assert split.seller_payout == Decimal("80.00")
        assert split.gross_amount == Decimal("100.00")

    @pytest.mark.parametrize(
        "gross,rate",
        [
            ("0.01", "20.00"),
            ("33.33", "15.00"),
            ("99.99", "12.50"),
            ("1234.57", "7.25"),
        ],
    )
    def test_parts_always_sum_to_gross(self, gross, rate):
        split = calculate_commission(gross, rate)

        assert split.commission_amount + split.seller_payout == Decimal(gross)

    def test_commission_rounds_half_up(self):
        split = calculate_commission("0.05", "50")

        assert split.commission_amount == Decimal("0.03")
        assert split.seller_payout == Decimal("0.02")

    def test_zero_gross_is_allowed(self):
        split = calculate_commission("0.00", "20.00")

        assert split.commission_amount == Decimal("0.00")
        assert split.seller_payout == Decimal("0.00")

    @pytest.mark.parametrize("rate", ["0", "100"])
    def test_boundary_rates(self, rate):
        split = calculate_commission("10.00", rate)

        assert split.commission_amount + split.seller_payout == Decimal("10.00")

    @pytest.mark.parametrize("rate", ["-0.01", "100.01"])
    def test_rate_out_of_range(self, rate):
        with pytest.raises(InvalidCommissionRateError):
            calculate_commission("10.00", rate)

    def test_negative_gross(self):
        with pytest.raises(InvalidAmountError):
            calculate_commission("-1.00", "20.00")
