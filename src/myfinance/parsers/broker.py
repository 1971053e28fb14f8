#!/usr/bin/env python3
"""
Brokerage Trade Parser

Parses execution notices from a configured brokerage into SecurityTrade
facts. One parser instance exists per broker profile.
"""

import logging

from ..core.config import BrokerProfile
from ..core.models import FundInfo, RawMessage, SecurityTrade, SourceKind, TradeAction
from ..core.money import Money
from ..extraction import (
    derive_amount,
    detect_trade_action,
    extract_amount,
    extract_date,
    extract_quantity,
    extract_unit_price,
    identify_fund,
    identify_security,
    normalize_message_text,
    normalize_text,
)

logger = logging.getLogger(__name__)

AMOUNT_LABELS = ("約定代金", "約定金額", "受渡金額", "買付金額", "売却金額", "精算金額", "注文金額")


class BrokerTradeParser:
    """
    Turns a brokerage execution notice into a SecurityTrade.

    The amount comes from a labeled field, falling back to unit price times
    quantity. Sells carry a negative amount. Purchases of configured funds
    are left to FundPurchaseParser so they are recorded once, with their NAV.
    """

    source = SourceKind.BROKER

    def __init__(self, profile: BrokerProfile, mapping: dict[str, FundInfo]):
        self.profile = profile
        self.mapping = mapping
        self.name = f"broker:{profile.name}"

    def matches(self, message: RawMessage) -> bool:
        subject = normalize_text(message.subject or "")
        if "約定" not in subject:
            return False
        sender = (message.sender or "").lower()
        if self.profile.domain.lower() in sender:
            return True
        body = normalize_message_text(message.text_content, message.html_content) or ""
        return self.profile.display_name in subject or self.profile.display_name in body

    def parse(self, message: RawMessage) -> SecurityTrade | None:
        subject = normalize_text(message.subject or "")
        body = normalize_message_text(message.text_content, message.html_content)
        if body is None:
            logger.warning(f"[{self.profile.name}] No usable body in execution notice: {subject!r}")
            return None

        occurred_on = extract_date(body, subject)
        if occurred_on is None:
            logger.warning(f"[{self.profile.name}] Could not extract trade date: {subject!r}")
            return None

        unit_price = extract_unit_price(body)
        quantity = extract_quantity(body)
        amount = extract_amount(body, AMOUNT_LABELS, largest_fallback=False) or derive_amount(unit_price, quantity)
        if amount is None:
            logger.warning(f"[{self.profile.name}] Could not extract or derive trade amount: {subject!r}")
            return None

        security = identify_security(body, subject, self.mapping)
        if security is None:
            logger.warning(f"[{self.profile.name}] Could not identify traded security: {subject!r}")
            return None

        action = detect_trade_action(f"{subject}\n{body}")
        if action == TradeAction.BUY and identify_fund(body, subject, self.mapping):
            logger.info(f"[{self.profile.name}] Fund purchase belongs to the fund parser: {subject!r}")
            return None

        signed = -amount if action == TradeAction.SELL else amount

        logger.debug(
            f"[{self.profile.name}] Parsed {action.value} of {security.display_name} on {occurred_on}: {signed:+,}"
        )
        return SecurityTrade(
            occurred_on=occurred_on,
            amount=Money.from_yen(signed),
            security_name=security.display_name,
            ticker=security.ticker,
            broker=self.profile.display_name,
            action=action,
            source_message=message,
            unit_price=unit_price,
            quantity=quantity,
        )
