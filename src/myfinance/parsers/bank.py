#!/usr/bin/env python3
"""
Bank Transfer Parser

Parses deposit and withdrawal notices from the configured bank into signed
BankMovement facts (credits positive, debits negative).
"""

import logging

from ..core.config import BankSourceConfig
from ..core.models import BankMovement, RawMessage, SourceKind
from ..core.money import Money
from ..extraction import (
    BankDirection,
    detect_bank_direction,
    extract_amount,
    extract_date,
    extract_labeled_movement,
    extract_labeled_text,
    matched_movement_keyword,
    normalize_message_text,
    normalize_text,
)
from ..extraction.extractors import CREDIT_AMOUNT_LABELS, DEBIT_AMOUNT_LABELS

logger = logging.getLogger(__name__)

DATE_LABELS = ("お取引日", "取引日", "入金日", "出金日", "振込日", "引落日")
AMOUNT_LABELS = (*CREDIT_AMOUNT_LABELS, *DEBIT_AMOUNT_LABELS, "お取引金額", "取引金額")
DESCRIPTION_LABELS = ("お取引内容", "摘要", "内容", "振込依頼人名", "お振込先")


class BankTransferParser:
    """Turns a bank movement notice into a BankMovement."""

    source = SourceKind.BANK

    def __init__(self, config: BankSourceConfig):
        self.config = config
        self.name = "bank"

    def matches(self, message: RawMessage) -> bool:
        """Notices come from the bank's domain or carry the bank name in the subject."""
        sender = (message.sender or "").lower()
        if self.config.sender_domain and self.config.sender_domain.lower() in sender:
            return True
        return bool(self.config.subject_keyword) and self.config.subject_keyword in (message.subject or "")

    def parse(self, message: RawMessage) -> BankMovement | None:
        subject = normalize_text(message.subject or "")
        body = normalize_message_text(message.text_content, message.html_content)
        if body is None:
            logger.warning(f"No usable body in bank notice: {subject!r}")
            return None

        occurred_on = extract_date(body, subject, DATE_LABELS)
        if occurred_on is None:
            logger.warning(f"Could not extract date from bank notice: {subject!r}")
            return None

        # direction and amount come from the same labeled line when one is used
        movement = extract_labeled_movement(body)
        if movement:
            direction, amount = movement
        else:
            amount = extract_amount(body, AMOUNT_LABELS)
            if amount is None:
                logger.warning(f"Could not extract amount from bank notice: {subject!r}")
                return None
            direction = detect_bank_direction(body)

        description = extract_labeled_text(body, DESCRIPTION_LABELS) or matched_movement_keyword(body, direction)
        if description is None:
            logger.warning(f"Could not describe bank movement: {subject!r}")
            return None

        signed = amount if direction == BankDirection.CREDIT else -amount
        logger.debug(f"Parsed bank movement: {occurred_on} {description} {signed:+,}")
        return BankMovement(
            occurred_on=occurred_on,
            amount=Money.from_yen(signed),
            description=description,
            source_message=message,
        )
