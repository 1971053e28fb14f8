"""
Core Utilities Package

Shared business logic, data models, and utilities used across the pipeline.

This package provides:
- Explicit configuration built once from the environment
- Integer-yen Money and FinancialDate primitives
- Typed transaction variants and ledger records
- Operator notifications
"""

from .config import (
    BrokerProfile,
    CardProfile,
    Config,
    ConfigurationError,
    Environment,
    load_fund_mapping,
)
from .currency import format_yen, parse_decimal, parse_yen, round_half_up, to_halfwidth
from .dates import FinancialDate
from .models import (
    BankLedgerRecord,
    BankMovement,
    CardCharge,
    ExpenseRecord,
    ExtractedTransaction,
    FundInfo,
    FundPurchase,
    ItemOutcome,
    ItemResult,
    LedgerRecord,
    RawMessage,
    RunSummary,
    SecurityTrade,
    SourceKind,
    TradeAction,
)
from .money import Money
from .notifications import EmailNotifier, LogNotifier, Notifier, build_notifier

__all__ = [
    "BankLedgerRecord",
    "BankMovement",
    "BrokerProfile",
    "CardCharge",
    "CardProfile",
    "Config",
    "ConfigurationError",
    "EmailNotifier",
    "Environment",
    "ExpenseRecord",
    "ExtractedTransaction",
    "FinancialDate",
    "FundInfo",
    "FundPurchase",
    "ItemOutcome",
    "ItemResult",
    "LedgerRecord",
    "LogNotifier",
    "Money",
    "Notifier",
    "RawMessage",
    "RunSummary",
    "SecurityTrade",
    "SourceKind",
    "TradeAction",
    "build_notifier",
    "format_yen",
    "load_fund_mapping",
    "parse_decimal",
    "parse_yen",
    "round_half_up",
    "to_halfwidth",
]
