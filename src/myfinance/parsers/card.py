#!/usr/bin/env python3
"""
Card Charge Parser

Parses card usage notices ("カード利用のお知らせ") from a configured issuer
into CardCharge facts.
"""

import logging

from ..core.config import CardProfile
from ..core.models import CardCharge, RawMessage, SourceKind
from ..core.money import Money
from ..extraction import (
    extract_amount,
    extract_date,
    extract_labeled_text,
    normalize_message_text,
    normalize_text,
)

logger = logging.getLogger(__name__)

DATE_LABELS = ("ご利用日", "利用日")
AMOUNT_LABELS = ("ご利用金額", "利用金額")
MERCHANT_LABELS = ("ご利用先", "利用先", "ご利用店名", "利用店名")
CARD_LABELS = ("ご利用カード", "利用カード")
PRELIMINARY_MARKER = "速報"


class CardChargeParser:
    """Turns a card usage notice into a CardCharge."""

    source = SourceKind.CARD

    def __init__(self, profile: CardProfile):
        self.profile = profile
        self.name = f"card:{profile.name}"

    def matches(self, message: RawMessage) -> bool:
        subject = normalize_text(message.subject or "")
        sender = (message.sender or "").lower()
        if not (self.profile.domain.lower() in sender or self.profile.display_name in subject):
            return False
        body = normalize_message_text(message.text_content, message.html_content) or ""
        return "利用" in subject or "利用" in body

    def parse(self, message: RawMessage) -> CardCharge | None:
        subject = normalize_text(message.subject or "")
        body = normalize_message_text(message.text_content, message.html_content)
        if body is None:
            logger.warning(f"[{self.profile.name}] No usable body in card notice: {subject!r}")
            return None

        occurred_on = extract_date(body, subject, DATE_LABELS)
        if occurred_on is None:
            logger.warning(f"[{self.profile.name}] Could not extract usage date: {subject!r}")
            return None

        amount = extract_amount(body, AMOUNT_LABELS)
        if amount is None:
            logger.warning(f"[{self.profile.name}] Could not extract usage amount: {subject!r}")
            return None

        merchant = extract_labeled_text(body, MERCHANT_LABELS)
        if merchant is None:
            logger.warning(f"[{self.profile.name}] Could not extract merchant: {subject!r}")
            return None

        payment_method = extract_labeled_text(body, CARD_LABELS) or self.profile.display_name
        preliminary = PRELIMINARY_MARKER in subject or PRELIMINARY_MARKER in body

        return CardCharge(
            occurred_on=occurred_on,
            amount=Money.from_yen(amount),
            merchant=merchant,
            payment_method=payment_method,
            source_message=message,
            is_preliminary_notice=preliminary,
        )
