#!/usr/bin/env python3
"""
Currency Handling Utilities

Yen amounts are whole numbers, so all ledger arithmetic is integer arithmetic.
Unit prices of listed securities may carry a fractional part and are kept as
Decimal until they are multiplied out.

Key Principles:
- Never use floating-point arithmetic for stored amounts
- Normalize full-width digits before any numeric parsing
- Round half up when a fractional result has to become yen
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Full-width characters that appear in Japanese notification templates
_HALFWIDTH_TABLE = str.maketrans(
    {
        **{chr(0xFF10 + i): str(i) for i in range(10)},
        "，": ",",
        "．": ".",
        "：": ":",
        "（": "(",
        "）": ")",
        "－": "-",
        "／": "/",
        "　": " ",
    }
)

_YEN_PATTERN = re.compile(r"[¥￥]?\s*(\d[\d,]*)(?:\.\d+)?\s*円?")
_DECIMAL_PATTERN = re.compile(r"-?\d[\d,]*(?:\.\d+)?")


def to_halfwidth(text: str) -> str:
    """
    Convert full-width digits and common punctuation to half-width.

    Example:
        to_halfwidth("１２，３４５円") -> "12,345円"
    """
    return text.translate(_HALFWIDTH_TABLE)


def parse_yen(amount_str: str | None) -> int | None:
    """
    Extract an integer yen amount from a string.

    Handles comma separators, full-width digits and a currency glyph
    before (¥/￥) or after (円) the number. Fractional yen are dropped.

    Args:
        amount_str: String containing an amount

    Returns:
        Amount in yen, or None if no number is present

    Examples:
        parse_yen("12,345円") -> 12345
        parse_yen("￥1,000") -> 1000
        parse_yen("１２，３４５円") -> 12345
    """
    if not amount_str:
        return None

    match = _YEN_PATTERN.search(to_halfwidth(amount_str))
    if not match:
        return None

    try:
        return int(match.group(1).replace(",", ""))
    except ValueError:
        return None


def parse_decimal(value_str: str | None) -> Decimal | None:
    """
    Extract a decimal number such as "2,500.5" from a string.

    Returns:
        Decimal value, or None if no number is present
    """
    if not value_str:
        return None

    match = _DECIMAL_PATTERN.search(to_halfwidth(value_str))
    if not match:
        return None

    try:
        return Decimal(match.group().replace(",", ""))
    except InvalidOperation:
        return None


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_yen(amount: int) -> str:
    """
    Format integer yen for display.

    Examples:
        format_yen(12345) -> "¥12,345"
        format_yen(-500) -> "-¥500"
    """
    if amount < 0:
        return f"-¥{abs(amount):,}"
    return f"¥{amount:,}"
