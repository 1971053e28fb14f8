#!/usr/bin/env python3
"""Tests for FinancialDate primitive type."""

from datetime import date

import pytest

from myfinance.core.dates import FinancialDate


class TestFinancialDateConstruction:
    """Test FinancialDate construction."""

    @pytest.mark.parametrize(
        "constructor,expected_date",
        [
            (lambda: FinancialDate(date=date(2025, 1, 15)), date(2025, 1, 15)),
            (lambda: FinancialDate.from_string("2025-01-15"), date(2025, 1, 15)),
            (lambda: FinancialDate.from_string("2025/01/15", date_format="%Y/%m/%d"), date(2025, 1, 15)),
        ],
        ids=["from_date", "from_string", "from_string_custom_format"],
    )
    def test_financial_date_construction(self, constructor, expected_date):
        fd = constructor()
        assert fd.date == expected_date

    def test_today(self):
        fd = FinancialDate.today()
        assert fd.date == date.today()


class TestFromJapanese:
    """Test parsing of the date forms found in notification mails."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2025/01/15", date(2025, 1, 15)),
            ("2025-1-5", date(2025, 1, 5)),
            ("2025年1月20日", date(2025, 1, 20)),
            ("2025年01月05日", date(2025, 1, 5)),
            ("約定日: 2025/02/03 (月)", date(2025, 2, 3)),
        ],
    )
    def test_valid_forms(self, text, expected):
        assert FinancialDate.from_japanese(text).date == expected

    @pytest.mark.parametrize("text", [None, "", "no date here", "2025年2月30日", "2025/13/01"])
    def test_invalid_or_missing(self, text):
        assert FinancialDate.from_japanese(text) is None

    def test_first_date_wins(self):
        fd = FinancialDate.from_japanese("受付 2025/01/14 約定 2025/01/15")
        assert fd.date == date(2025, 1, 14)


class TestFinancialDateFormatting:
    """Test FinancialDate formatting."""

    def test_to_slash_string(self):
        fd = FinancialDate(date=date(2025, 1, 5))
        assert fd.to_slash_string() == "2025/01/05"
        assert str(fd) == "2025/01/05"

    def test_to_compact_string(self):
        assert FinancialDate(date=date(2025, 1, 5)).to_compact_string() == "20250105"

    def test_to_kanji_string(self):
        fd = FinancialDate(date=date(2025, 1, 5))
        assert fd.to_kanji_string() == "2025年1月5日"
        assert fd.to_kanji_string(zero_pad=True) == "2025年01月05日"

    def test_repr(self):
        assert repr(FinancialDate(date=date(2025, 1, 5))) == "FinancialDate(date=datetime.date(2025, 1, 5))"


class TestFinancialDateCalculations:
    """Test FinancialDate calculations."""

    def test_minus_days_crosses_month(self):
        fd = FinancialDate(date=date(2025, 3, 2))
        assert fd.minus_days(7).date == date(2025, 2, 23)


class TestFinancialDateComparison:
    """Test FinancialDate comparisons."""

    def test_ordering(self):
        earlier = FinancialDate(date=date(2025, 1, 1))
        later = FinancialDate(date=date(2025, 1, 2))
        assert earlier < later
        assert earlier <= later
        assert later > earlier
        assert later >= earlier
        assert earlier == FinancialDate(date=date(2025, 1, 1))

    def test_not_equal_to_other_types(self):
        assert FinancialDate(date=date(2025, 1, 1)) != "2025/01/01"

    def test_hashable(self):
        dates = {FinancialDate(date=date(2025, 1, 1)), FinancialDate(date=date(2025, 1, 1))}
        assert len(dates) == 1
