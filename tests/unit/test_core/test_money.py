#!/usr/bin/env python3
"""Tests for Money primitive type."""

import pytest

from myfinance.core.money import Money


@pytest.mark.currency
class TestMoneyConstruction:
    """Test Money construction."""

    def test_from_yen(self):
        assert Money.from_yen(33333).to_yen() == 33333

    @pytest.mark.parametrize("text,expected", [("¥12,345", 12345), ("12,345円", 12345), ("１０００円", 1000)])
    def test_from_string(self, text, expected):
        assert Money.from_string(text).to_yen() == expected

    def test_from_string_without_amount(self):
        with pytest.raises(ValueError, match="No yen amount"):
            Money.from_string("なし")


@pytest.mark.currency
class TestMoneyArithmetic:
    """Test Money arithmetic."""

    def test_add_and_subtract(self):
        assert Money.from_yen(100) + Money.from_yen(50) == Money.from_yen(150)
        assert Money.from_yen(100) - Money.from_yen(150) == Money.from_yen(-50)

    def test_multiply(self):
        assert Money.from_yen(250) * 4 == Money.from_yen(1000)

    def test_negate_and_abs(self):
        sale = Money.from_yen(12000).negate()
        assert sale.to_yen() == -12000
        assert sale.abs() == Money.from_yen(12000)

    def test_is_positive(self):
        assert Money.from_yen(1).is_positive()
        assert not Money.from_yen(0).is_positive()
        assert not Money.from_yen(-1).is_positive()


@pytest.mark.currency
class TestMoneyDisplay:
    """Test Money string forms and comparisons."""

    def test_str_and_repr(self):
        assert str(Money.from_yen(33333)) == "¥33,333"
        assert str(Money.from_yen(-500)) == "-¥500"
        assert repr(Money.from_yen(12000)) == "Money(yen=12000)"

    def test_ordering(self):
        assert Money.from_yen(1) < Money.from_yen(2)
        assert Money.from_yen(2) >= Money.from_yen(2)
        assert Money.from_yen(3) > Money.from_yen(2)
        assert Money.from_yen(1) != 1
