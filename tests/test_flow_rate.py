"""
Tests for the flow rate calculator.

Tests cover:
- The reference deposit (1 ETH at 2000 USD, 10%)
- Truncation and the positive-rate threshold
- Rejection of non-positive inputs and int96 overflow
"""

import pytest

from superfarm.errors import FlowRateOverflowError, InvalidDepositError
from superfarm.flow_rate import (
    MAX_FLOW_RATE,
    SECONDS_PER_YEAR,
    flow_rate,
    format_rate,
    minimum_deposit,
    yearly_amount,
)

from .conftest import ONE_ETH, RATE_1_ETH, RATE_2_ETH

PRICE = 2000 * 10 ** 8


# =============================================================
# TEST: Formula
# =============================================================

class TestFlowRate:
    """Rate = deposit * 10^decimals * yield / price / 100 / year."""

    def test_seconds_per_year_ignores_leap_years(self):
        assert SECONDS_PER_YEAR == 31_536_000

    def test_reference_deposit(self):
        assert flow_rate(ONE_ETH, PRICE, 8, 10) == RATE_1_ETH

    def test_double_deposit_truncates_independently(self):
        assert flow_rate(2 * ONE_ETH, PRICE, 8, 10) == RATE_2_ETH
        # Two separate 1 ETH mints stream one unit less than one 2 ETH mint
        assert RATE_2_ETH == 2 * RATE_1_ETH + 1

    def test_matches_integer_formula(self):
        deposit, price, decimals, pct = 123_456_789_000_000, 1_850_12345678, 8, 7
        expected = deposit * 10 ** decimals * pct // price // 100 // SECONDS_PER_YEAR
        assert flow_rate(deposit, price, decimals, pct) == expected

    def test_higher_price_lowers_rate(self):
        assert flow_rate(ONE_ETH, PRICE * 2, 8, 10) < RATE_1_ETH

    def test_rejects_non_integer(self):
        with pytest.raises(TypeError):
            flow_rate(1.5, PRICE, 8, 10)


# =============================================================
# TEST: Threshold and rejections
# =============================================================

class TestRejections:
    """Non-positive results fail the mint."""

    def test_minimum_deposit_is_exact_threshold(self):
        threshold = minimum_deposit(PRICE, 8, 10)
        assert threshold == 630_720_000_000
        assert flow_rate(threshold, PRICE, 8, 10) == 1
        with pytest.raises(InvalidDepositError):
            flow_rate(threshold - 1, PRICE, 8, 10)

    def test_one_wei_is_rejected(self):
        with pytest.raises(InvalidDepositError):
            flow_rate(1, PRICE, 8, 10)

    @pytest.mark.parametrize("price", [0, -1, -PRICE])
    def test_non_positive_price(self, price):
        with pytest.raises(InvalidDepositError):
            flow_rate(ONE_ETH, price, 8, 10)

    @pytest.mark.parametrize("deposit", [0, -ONE_ETH])
    def test_non_positive_deposit(self, deposit):
        with pytest.raises(InvalidDepositError):
            flow_rate(deposit, PRICE, 8, 10)

    def test_zero_yield_never_streams(self):
        with pytest.raises(InvalidDepositError):
            flow_rate(ONE_ETH, PRICE, 8, 0)
        assert minimum_deposit(PRICE, 8, 0) == 0

    def test_overflow_is_an_invalid_deposit(self):
        with pytest.raises(FlowRateOverflowError) as exc:
            flow_rate(10 ** 40, 1, 18, 100)
        assert isinstance(exc.value, InvalidDepositError)
        assert exc.value.context["flow_rate"] > MAX_FLOW_RATE


# =============================================================
# TEST: Helpers
# =============================================================

class TestHelpers:

    def test_yearly_amount(self):
        assert yearly_amount(RATE_1_ETH) == RATE_1_ETH * 31_536_000

    def test_format_rate(self):
        text = format_rate(10 ** 18)
        assert text.startswith("1.000000000000000000/s")
        assert "31,536,000.00/yr" in text
