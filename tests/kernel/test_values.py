"""Tests for recon_kernel.domain.values -- Decimal money helpers."""

from decimal import Decimal

import pytest

from recon_kernel.domain.values import (
    ZERO,
    amounts_match,
    expected_remaining,
    format_money,
    round_money,
    to_money,
)


class TestToMoney:
    def test_decimal_passes_through(self):
        assert to_money(Decimal("12.34")) == Decimal("12.34")

    def test_string_and_int(self):
        assert to_money("150.00") == Decimal("150.00")
        assert to_money(" 7 ") == Decimal("7")
        assert to_money(42) == Decimal("42")

    def test_float_uses_shortest_repr(self):
        assert to_money(0.1) == Decimal("0.1")

    def test_none_and_empty_read_as_zero(self):
        assert to_money(None) == ZERO
        assert to_money("") == ZERO

    def test_garbage_raises_value_error(self):
        with pytest.raises(ValueError, match="Invalid monetary amount"):
            to_money("twelve")


class TestRounding:
    def test_round_half_up(self):
        assert round_money(Decimal("1.005")) == Decimal("1.01")
        assert round_money(Decimal("1.004")) == Decimal("1.00")

    def test_format_money_two_places(self):
        assert format_money(Decimal("150")) == "150.00"
        assert format_money(Decimal("99.999")) == "100.00"


class TestTolerance:
    def test_within_one_cent_matches(self):
        assert amounts_match(Decimal("100.00"), Decimal("100.01"))
        assert amounts_match(Decimal("100.01"), Decimal("100.00"))

    def test_beyond_one_cent_differs(self):
        assert not amounts_match(Decimal("100.00"), Decimal("100.02"))

    def test_custom_tolerance(self):
        assert amounts_match(Decimal("10"), Decimal("11"), tolerance=Decimal("1"))


class TestExpectedRemaining:
    def test_outstanding_balance(self):
        assert expected_remaining(Decimal("1000"), Decimal("700")) == Decimal("300")

    def test_overpayment_clamps_to_zero(self):
        assert expected_remaining(Decimal("1000"), Decimal("1200")) == ZERO
