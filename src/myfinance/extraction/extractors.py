#!/usr/bin/env python3
"""
Field Extractors

Independent cascading extractors for the fields of a notification: trade
date, monetary amount, fund or security identity, buy/sell direction,
unit price and quantity.

Every extractor is an ordered list of pattern matchers. The first match wins
and there is no backtracking across field types. An extractor that cannot
establish its field returns None (abstains); it never raises on odd input.

All extractors expect normalized text (see normalizer.normalize_message_text)
but tolerate full-width punctuation as well.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ..core.currency import parse_decimal, parse_yen, round_half_up, to_halfwidth
from ..core.dates import DATE_TOKEN_PATTERN, FinancialDate
from ..core.models import FundInfo, TradeAction

logger = logging.getLogger(__name__)

# Separator between a label and its value
SEP = r"[：:\s]*"

DEFAULT_DATE_LABELS = ("約定日", "買付日", "受渡日", "注文日")
DEFAULT_AMOUNT_LABELS = ("買付金額", "約定金額", "購入金額", "受渡金額", "注文金額")

SECURITY_NAME_LABELS = ("銘柄名", "ファンド名", "商品名", "銘柄(?!コード)")
SECURITY_CODE_LABELS = ("銘柄コード", "証券コード", "コード")
TRADE_TYPE_LABELS = ("売買区分", "取引区分", "取引種別", "売買", "取引")
UNIT_PRICE_LABELS = ("約定単価", "約定価格", "基準価額", "単価")
QUANTITY_LABELS = ("約定数量", "約定口数", "数量", "口数", "株数")

DEBIT_AMOUNT_LABELS = ("出金額", "お引出金額", "引出金額", "引落金額", "お振込金額", "振込金額", "お支払金額")
CREDIT_AMOUNT_LABELS = ("振込入金額", "入金額", "お預入金額", "預入金額")

_DATE_TOKEN = re.compile(DATE_TOKEN_PATTERN)
_NUMBER = r"[0-9,０-９，]+"
_GENERIC_AMOUNT = re.compile(rf"金額{SEP}[¥￥]?\s*({_NUMBER})\s*円")
_ANY_YEN = re.compile(r"[¥￥]?\s*([0-9,０-９，]{3,})\s*円")
_SELL_VOCABULARY = re.compile(r"売付|売却|売り|解約(?!手数料)|換金(?!手数料)")
_CREDIT_VOCABULARY = re.compile(r"振込入金|入金|預入|受取")
_DEBIT_VOCABULARY = re.compile(r"出金|引落|引出|お振込(?!入金)|振替|支払")
_SECURITY_CODE = r"[0-9A-Z]{4,8}"
# "取引: 売却" on its own line; a bare colon is required so "取引日:" never matches
_TRADE_TYPE_LINE = re.compile(r"(?m)^\s*(?:" + "|".join(TRADE_TYPE_LABELS) + r")\s*[：:]\s*([^\n]+)")


def _alternation(labels: tuple[str, ...]) -> str:
    return "|".join(labels)


# ── Dates ──────────────────────────────────────────────────────────────


def extract_date(
    body: str, subject: str = "", labels: tuple[str, ...] = DEFAULT_DATE_LABELS
) -> FinancialDate | None:
    """
    Extract the transaction date.

    Order of attempts:
        1. each labeled pattern ("約定日: 2025/01/15", ...) in label order
        2. the first bare date anywhere in the body
        3. the first bare date in the subject

    Impossible calendar dates are rejected at each step, so "2024年2月30日"
    falls through to the next attempt instead of being clamped.
    """
    for label in labels:
        pattern = re.compile(rf"{label}(?:時)?{SEP}({DATE_TOKEN_PATTERN})")
        match = pattern.search(body)
        if match:
            parsed = FinancialDate.from_japanese(match.group(1))
            if parsed:
                return parsed

    for text in (body, subject):
        match = _DATE_TOKEN.search(text or "")
        if match:
            parsed = FinancialDate.from_japanese(match.group())
            if parsed:
                return parsed

    return None


# ── Amounts ────────────────────────────────────────────────────────────


def extract_amount(
    body: str, labels: tuple[str, ...] = DEFAULT_AMOUNT_LABELS, largest_fallback: bool = True
) -> int | None:
    """
    Extract the principal amount in yen.

    Labeled patterns win; a labeled line reading zero (the unused column of a
    two-column notice) is skipped. Failing those, every "N円" token of three
    or more digit/comma characters is collected and the largest is returned.
    Shorter tokens are left out so stray one- or two-digit figures such as
    "1円単位" or "10円" point rates never compete. The largest is chosen
    because fees and incidental charges are usually smaller than the
    principal. That fallback is a heuristic and can pick an unrelated
    figure in unusual templates; callers with a better fallback of their own pass largest_fallback=False.

    Returns:
        Positive integer yen, or None
    """
    patterns = [re.compile(rf"(?:{_alternation(labels)}){SEP}[¥￥]?\s*({_NUMBER})\s*円?"), _GENERIC_AMOUNT]
    for pattern in patterns:
        for match in pattern.finditer(body):
            amount = parse_yen(match.group(1))
            if amount and amount > 0:
                return amount

    if not largest_fallback:
        return None

    candidates = [value for value in (parse_yen(m.group(1)) for m in _ANY_YEN.finditer(body)) if value and value > 0]
    if candidates:
        return max(candidates)

    return None


# ── Identity ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FundMatch:
    """Configured fund keyword found in a message."""

    key: str
    info: FundInfo


def identify_fund(body: str, subject: str, mapping: dict[str, FundInfo]) -> FundMatch | None:
    """
    Find the configured fund mentioned in a message.

    Keywords are tried longest first, so "Fund A Global" is never shadowed
    by its prefix "Fund A". Matching is case-sensitive substring containment.
    """
    combined = f"{subject}\n{body}"
    for key in sorted(mapping, key=len, reverse=True):
        if to_halfwidth(key) in combined:
            return FundMatch(key=key, info=mapping[key])
    return None


@dataclass(frozen=True)
class SecurityMatch:
    """Security named in a brokerage notice. At least one of name/code is set."""

    name: str | None
    code: str | None

    @property
    def display_name(self) -> str:
        return self.name or self.code or ""

    @property
    def ticker(self) -> str:
        return self.code or ""


def identify_security(body: str, subject: str, mapping: dict[str, FundInfo]) -> SecurityMatch | None:
    """
    Identify the traded security.

    Order of attempts:
        1. structured "銘柄: name (code)"
        2. name-only and code-only labels, independently
        3. the fund keyword table (brokers sell the same index funds)

    A fund table hit also fills a missing code with the fund's ticker.
    """
    names = _alternation(SECURITY_NAME_LABELS)
    structured = re.compile(rf"(?:{names}){SEP}([^\n(（]+?)\s*[(（]\s*({_SECURITY_CODE})\s*[)）]")
    match = structured.search(body)
    if match:
        return SecurityMatch(name=match.group(1).strip(), code=match.group(2))

    name = None
    name_match = re.search(rf"(?:{names}){SEP}([^\n]+)", body)
    if name_match:
        name = name_match.group(1).strip() or None

    code = None
    code_match = re.search(rf"(?:{_alternation(SECURITY_CODE_LABELS)}){SEP}({_SECURITY_CODE})\b", body)
    if code_match:
        code = code_match.group(1)

    if code is None:
        fund = identify_fund(body, subject, mapping)
        if fund:
            return SecurityMatch(name=fund.info.display_name, code=fund.info.ticker)

    if name or code:
        return SecurityMatch(name=name, code=code)
    return None


def extract_labeled_text(body: str, labels: tuple[str, ...]) -> str | None:
    """Value of the first "label: value" line for any of the labels."""
    match = re.search(rf"(?:{_alternation(labels)}){SEP}([^\n]+)", body)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


# ── Direction ──────────────────────────────────────────────────────────


def detect_trade_action(text: str) -> TradeAction:
    """
    Buy or sell.

    A labeled trade-type field decides when present. Otherwise the presence
    of sell-side vocabulary means SELL; BUY is the default and is not
    inferred from buy vocabulary.
    """
    match = _TRADE_TYPE_LINE.search(text)
    if match:
        return TradeAction.SELL if _SELL_VOCABULARY.search(match.group(1)) else TradeAction.BUY
    return TradeAction.SELL if _SELL_VOCABULARY.search(text) else TradeAction.BUY


def has_sell_vocabulary(text: str) -> bool:
    return detect_trade_action(text) == TradeAction.SELL


class BankDirection(Enum):
    CREDIT = "credit"
    DEBIT = "debit"


def extract_labeled_movement(body: str) -> tuple[BankDirection, int] | None:
    """
    Direction and amount from a labeled deposit or withdrawal line.

    Lines are read in body order and the first with a positive amount wins,
    so a notice listing both columns ("入金額: 0円 / 出金額: 5,000円") is read
    from the column actually used.
    """
    pattern = re.compile(
        rf"(?:(?P<credit>{_alternation(CREDIT_AMOUNT_LABELS)})|{_alternation(DEBIT_AMOUNT_LABELS)})"
        rf"{SEP}[¥￥]?\s*(?P<amount>{_NUMBER})"
    )
    for match in pattern.finditer(body):
        amount = parse_yen(match.group("amount"))
        if amount and amount > 0:
            direction = BankDirection.CREDIT if match.group("credit") else BankDirection.DEBIT
            return direction, amount
    return None


def detect_bank_direction(body: str) -> BankDirection:
    """
    Credit or debit for a bank movement notice.

    A labeled withdrawal/deposit line with a positive amount decides first.
    Otherwise movement vocabulary is consulted (ignoring the compound 入出金
    used in subjects), with the earliest keyword winning. Credit is the default.
    """
    movement = extract_labeled_movement(body)
    if movement:
        return movement[0]

    text = body.replace("入出金", "")
    credit = _CREDIT_VOCABULARY.search(text)
    debit = _DEBIT_VOCABULARY.search(text)
    if debit and (not credit or debit.start() < credit.start()):
        return BankDirection.DEBIT
    return BankDirection.CREDIT


def matched_movement_keyword(body: str, direction: BankDirection) -> str | None:
    """The vocabulary word that describes the movement, used as a fallback description."""
    vocabulary = _CREDIT_VOCABULARY if direction == BankDirection.CREDIT else _DEBIT_VOCABULARY
    match = vocabulary.search(body.replace("入出金", ""))
    return match.group() if match else None


# ── Price and quantity ─────────────────────────────────────────────────


def extract_unit_price(body: str) -> Decimal | None:
    """Labeled unit price ("約定単価: 2,500.5円"). Non-positive values abstain."""
    match = re.search(rf"(?:{_alternation(UNIT_PRICE_LABELS)}){SEP}[¥￥]?\s*([0-9,]+(?:\.[0-9]+)?)", body)
    if not match:
        return None
    price = parse_decimal(match.group(1))
    if price is None or price <= 0:
        return None
    return price


def extract_quantity(body: str) -> int | None:
    """Labeled quantity ("約定数量: 100株"). Non-positive values abstain."""
    match = re.search(rf"(?:{_alternation(QUANTITY_LABELS)}){SEP}([0-9,]+)\s*(?:株|口)?", body)
    if not match:
        return None
    try:
        quantity = int(match.group(1).replace(",", ""))
    except ValueError:
        return None
    return quantity if quantity > 0 else None


def derive_amount(unit_price: Decimal | None, quantity: int | None) -> int | None:
    """price × quantity in yen when both are present and positive."""
    if unit_price is None or quantity is None or unit_price <= 0 or quantity <= 0:
        return None
    return round_half_up(unit_price * quantity)
