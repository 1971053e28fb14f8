"""
Source Parsers Package

One parser per notification family. Parsers share no base class; they all
satisfy the SourceParser protocol:

- source: the SourceKind of the facts they produce
- matches(message): classification predicate
- parse(message): the typed transaction, or None to abstain

Example Usage:
    parser = FundPurchaseParser(config.fund.mapping)
    if parser.matches(message):
        transaction = parser.parse(message)
"""

from typing import Protocol

from ..core.models import ExtractedTransaction, RawMessage, SourceKind
from .bank import BankTransferParser
from .broker import BrokerTradeParser
from .card import CardChargeParser
from .fund import FundPurchaseParser


class SourceParser(Protocol):
    """Structural interface shared by every source parser."""

    source: SourceKind
    name: str

    def matches(self, message: RawMessage) -> bool: ...

    def parse(self, message: RawMessage) -> ExtractedTransaction | None: ...


__all__ = [
    "BankTransferParser",
    "BrokerTradeParser",
    "CardChargeParser",
    "FundPurchaseParser",
    "SourceParser",
]
