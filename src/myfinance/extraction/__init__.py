"""
Text Extraction Package

Normalization of notification bodies and the cascading field extractors the
source parsers are built from.
"""

from .extractors import (
    BankDirection,
    FundMatch,
    SecurityMatch,
    derive_amount,
    detect_bank_direction,
    detect_trade_action,
    extract_amount,
    extract_date,
    extract_labeled_movement,
    extract_labeled_text,
    extract_quantity,
    extract_unit_price,
    has_sell_vocabulary,
    identify_fund,
    identify_security,
    matched_movement_keyword,
)
from .normalizer import html_to_text, normalize_message_text, normalize_text

__all__ = [
    "BankDirection",
    "FundMatch",
    "SecurityMatch",
    "derive_amount",
    "detect_bank_direction",
    "detect_trade_action",
    "extract_amount",
    "extract_date",
    "extract_labeled_movement",
    "extract_labeled_text",
    "extract_quantity",
    "extract_unit_price",
    "has_sell_vocabulary",
    "html_to_text",
    "identify_fund",
    "identify_security",
    "matched_movement_keyword",
    "normalize_message_text",
    "normalize_text",
]
