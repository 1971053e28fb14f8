#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable date wrapper with consistent formatting for financial operations.
Provides standardized date handling for notification emails, the price source
and the ledger.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

# YYYY/MM/DD, YYYY-MM-DD or YYYY年M月D日 (separators may not be mixed freely,
# but the trailing 日 is optional in kanji form)
DATE_TOKEN_PATTERN = r"\d{4}(?:[/\-]\d{1,2}[/\-]\d{1,2}|年\d{1,2}月\d{1,2}日?)"

_DATE_PARTS = re.compile(r"(\d{4})[/\-年](\d{1,2})[/\-月](\d{1,2})")


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, date_format: str = "%Y-%m-%d") -> "FinancialDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            date_format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            FinancialDate object
        """
        return cls(date=datetime.strptime(date_str, date_format).date())

    @classmethod
    def from_japanese(cls, date_str: str | None) -> "FinancialDate | None":
        """
        Parse the first date found in a string.

        Accepts "2024/01/15", "2024-01-15", "2024年1月15日" and "2024年01月15日".
        Impossible calendar dates (e.g. 2024年2月30日) yield None.

        Args:
            date_str: Text containing a date

        Returns:
            FinancialDate, or None if no valid date is present
        """
        if not date_str:
            return None

        match = _DATE_PARTS.search(date_str)
        if not match:
            return None

        year, month, day = (int(part) for part in match.groups())
        try:
            return cls(date=date(year, month, day))
        except ValueError:
            return None

    @classmethod
    def today(cls) -> "FinancialDate":
        """Get today's date."""
        return cls(date=date.today())

    def to_slash_string(self) -> str:
        """Format as YYYY/MM/DD (ledger format)."""
        return self.date.strftime("%Y/%m/%d")

    def to_compact_string(self) -> str:
        """Format as YYYYMMDD (price source query format)."""
        return self.date.strftime("%Y%m%d")

    def to_kanji_string(self, zero_pad: bool = False) -> str:
        """Format as YYYY年M月D日, optionally zero padded."""
        if zero_pad:
            return f"{self.date.year}年{self.date.month:02d}月{self.date.day:02d}日"
        return f"{self.date.year}年{self.date.month}月{self.date.day}日"

    def minus_days(self, days: int) -> "FinancialDate":
        """Return the date `days` days earlier."""
        return FinancialDate(date=self.date - timedelta(days=days))

    def __str__(self) -> str:
        """String representation."""
        return self.to_slash_string()

    def __eq__(self, other: object) -> bool:
        """Check equality."""
        if not isinstance(other, FinancialDate):
            return NotImplemented
        return self.date == other.date

    def __lt__(self, other: "FinancialDate") -> bool:
        """Less than comparison."""
        return self.date < other.date

    def __le__(self, other: "FinancialDate") -> bool:
        """Less than or equal comparison."""
        return self.date <= other.date

    def __gt__(self, other: "FinancialDate") -> bool:
        """Greater than comparison."""
        return self.date > other.date

    def __ge__(self, other: "FinancialDate") -> bool:
        """Greater than or equal comparison."""
        return self.date >= other.date

    def __repr__(self) -> str:
        """Repr format."""
        return f"FinancialDate(date={self.date!r})"
