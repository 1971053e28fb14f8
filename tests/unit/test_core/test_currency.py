#!/usr/bin/env python3
"""Tests for yen parsing and formatting."""

from decimal import Decimal

import pytest

from myfinance.core.currency import format_yen, parse_decimal, parse_yen, round_half_up, to_halfwidth


@pytest.mark.currency
class TestParseYen:
    """Test integer yen extraction."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("12,345円", 12345),
            ("￥1,000", 1000),
            ("¥ 500", 500),
            ("１２，３４５円", 12345),
            ("33333", 33333),
            ("2,500.5円", 2500),
        ],
    )
    def test_parse_yen(self, text, expected):
        assert parse_yen(text) == expected

    @pytest.mark.parametrize("text", [None, "", "円", "なし"])
    def test_parse_yen_without_number(self, text):
        assert parse_yen(text) is None


@pytest.mark.currency
class TestParseDecimal:
    """Test decimal extraction for unit prices and quantities."""

    def test_fractional_price(self):
        assert parse_decimal("2,500.5円") == Decimal("2500.5")

    def test_full_width(self):
        assert parse_decimal("１，０００．２５") == Decimal("1000.25")

    def test_negative(self):
        assert parse_decimal("-12.5") == Decimal("-12.5")

    def test_missing(self):
        assert parse_decimal("---") is None
        assert parse_decimal(None) is None


@pytest.mark.currency
class TestRounding:
    """Test half-up rounding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("0.5"), 1),
            (Decimal("1.5"), 2),
            (Decimal("2.5"), 3),
            (Decimal("2.49"), 2),
            (Decimal("-2.5"), -3),
        ],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


@pytest.mark.currency
class TestFormatting:
    """Test display helpers."""

    def test_format_yen(self):
        assert format_yen(12345) == "¥12,345"
        assert format_yen(0) == "¥0"
        assert format_yen(-500) == "-¥500"

    def test_to_halfwidth(self):
        assert to_halfwidth("１２，３４５円") == "12,345円"
        assert to_halfwidth("約定日：２０２５／０１／１５") == "約定日:2025/01/15"
        assert to_halfwidth("（株）　テスト") == "(株) テスト"
