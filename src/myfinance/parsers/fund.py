#!/usr/bin/env python3
"""
Fund Purchase Parser

Parses investment-trust purchase confirmations ("約定のお知らせ") into
FundPurchase facts using the configured fund keyword table.
"""

import logging
import re

from ..core.models import FundInfo, FundPurchase, RawMessage, SourceKind
from ..core.money import Money
from ..extraction import (
    extract_amount,
    extract_date,
    has_sell_vocabulary,
    identify_fund,
    normalize_message_text,
    normalize_text,
)

logger = logging.getLogger(__name__)

_PURCHASE_KEYWORDS = re.compile(r"約定|買付")


class FundPurchaseParser:
    """
    Turns a fund purchase notice into a FundPurchase.

    Abstains (returns None) when the date, the amount or the fund cannot be
    established, and when the notice describes a sale; sales are recorded by
    the brokerage parsers instead.
    """

    source = SourceKind.FUND

    def __init__(self, mapping: dict[str, FundInfo]):
        self.mapping = mapping
        self.name = "fund"

    def matches(self, message: RawMessage) -> bool:
        """Purchase notices mention 約定 or 買付 in the subject or body."""
        subject = normalize_text(message.subject or "")
        body = normalize_message_text(message.text_content, message.html_content) or ""
        return bool(_PURCHASE_KEYWORDS.search(subject) or _PURCHASE_KEYWORDS.search(body))

    def parse(self, message: RawMessage) -> FundPurchase | None:
        subject = normalize_text(message.subject or "")
        body = normalize_message_text(message.text_content, message.html_content)
        if body is None:
            logger.warning(f"No usable body in fund notice: {message.subject!r}")
            return None

        if has_sell_vocabulary(f"{subject}\n{body}"):
            logger.info(f"Fund notice describes a sale, leaving it to the broker parser: {subject!r}")
            return None

        occurred_on = extract_date(body, subject)
        if occurred_on is None:
            logger.warning(f"Could not extract trade date from fund notice: {subject!r}")
            return None

        amount = extract_amount(body)
        if amount is None:
            logger.warning(f"Could not extract purchase amount from fund notice: {subject!r}")
            return None

        fund = identify_fund(body, subject, self.mapping)
        if fund is None:
            logger.warning(f"No configured fund keyword found in notice: {subject!r}")
            return None

        logger.debug(f"Parsed fund purchase: {fund.key} {occurred_on} ¥{amount:,}")
        return FundPurchase(
            occurred_on=occurred_on,
            amount=Money.from_yen(amount),
            fund_key=fund.key,
            ticker=fund.info.ticker,
            display_name=fund.info.display_name,
            source_message=message,
        )
