#!/usr/bin/env python3
"""
Core Data Models for MyFinance

Typed records flowing through the reconciliation pipeline:

- RawMessage: one notification email as fetched from the mailbox
- ExtractedTransaction: tagged union of the four transaction variants a
  source parser can produce (FundPurchase, BankMovement, SecurityTrade,
  CardCharge)
- LedgerRecord / BankLedgerRecord / ExpenseRecord: persisted ledger rows
- ItemOutcome / RunSummary: per-message outcomes and run statistics
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from .dates import FinancialDate
from .money import Money


class SourceKind(Enum):
    """Notification families handled by the pipeline."""

    FUND = "fund"
    BANK = "bank"
    BROKER = "broker"
    CARD = "card"


class TradeAction(Enum):
    """Direction of a securities trade."""

    BUY = "buy"
    SELL = "sell"


class ItemOutcome(Enum):
    """Terminal state of one message within a pipeline run."""

    WRITTEN = "written"
    DUPLICATE = "duplicate"
    ABSTAINED = "abstained"
    NOT_YET_AVAILABLE = "not_yet_available"
    FAULTED = "faulted"
    ALREADY_PROCESSED = "already_processed"

    @property
    def marks_processed(self) -> bool:
        """Only durably recorded or duplicate items are marked processed."""
        return self in (ItemOutcome.WRITTEN, ItemOutcome.DUPLICATE)


@dataclass(frozen=True)
class FundInfo:
    """Price-source ticker and display name for a configured fund keyword."""

    ticker: str
    display_name: str


@dataclass
class RawMessage:
    """One notification email as delivered by the mailbox."""

    message_id: str
    subject: str
    sender: str
    received_at: datetime
    text_content: str | None = None
    html_content: str | None = None
    unread: bool = True
    uid: str | None = None
    folder: str = "INBOX"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def idempotency_key(self) -> str:
        """Stable identity of the message, independent of its read flag."""
        if self.message_id:
            return self.message_id.strip()
        return f"{self.folder}:{self.uid}"


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValueError(message)


@dataclass(frozen=True)
class FundPurchase:
    """Investment-trust purchase. Amount is always positive."""

    occurred_on: FinancialDate
    amount: Money
    fund_key: str
    ticker: str
    display_name: str
    source_message: RawMessage = field(compare=False, repr=False)

    kind = SourceKind.FUND

    def __post_init__(self) -> None:
        _require(self.amount.is_positive(), f"Fund purchase amount must be positive: {self.amount!r}")


@dataclass(frozen=True)
class BankMovement:
    """Bank account credit (positive) or debit (negative)."""

    occurred_on: FinancialDate
    amount: Money
    description: str
    source_message: RawMessage = field(compare=False, repr=False)

    kind = SourceKind.BANK

    def __post_init__(self) -> None:
        _require(self.amount.to_yen() != 0, "Bank movement amount must be non-zero")

    @property
    def is_credit(self) -> bool:
        return self.amount.is_positive()


@dataclass(frozen=True)
class SecurityTrade:
    """Brokerage execution. Amount is negative for sells."""

    occurred_on: FinancialDate
    amount: Money
    security_name: str
    ticker: str
    broker: str
    action: TradeAction
    source_message: RawMessage = field(compare=False, repr=False)
    unit_price: Decimal | None = None
    quantity: int | None = None

    kind = SourceKind.BROKER

    def __post_init__(self) -> None:
        _require(self.amount.to_yen() != 0, "Trade amount must be non-zero")
        if self.action == TradeAction.SELL:
            _require(self.amount.to_yen() < 0, f"Sell amount must be negative: {self.amount!r}")
        else:
            _require(self.amount.to_yen() > 0, f"Buy amount must be positive: {self.amount!r}")


@dataclass(frozen=True)
class CardCharge:
    """Credit card usage notice. Amount is always positive."""

    occurred_on: FinancialDate
    amount: Money
    merchant: str
    payment_method: str
    source_message: RawMessage = field(compare=False, repr=False)
    is_preliminary_notice: bool = False

    kind = SourceKind.CARD

    def __post_init__(self) -> None:
        _require(self.amount.is_positive(), f"Card charge amount must be positive: {self.amount!r}")


ExtractedTransaction = Union[FundPurchase, BankMovement, SecurityTrade, CardCharge]


def _price_to_cell(price: Decimal | None) -> int | str | None:
    if price is None:
        return None
    if price == price.to_integral_value():
        return int(price)
    return str(price.normalize())


def _text_from_cell(value: Any) -> str:
    """Empty ledger cells come back as None; text columns read them as ""."""
    return "" if value is None else str(value)


@dataclass(frozen=True)
class LedgerRecord:
    """
    Persisted fund purchase or securities trade.

    Never mutated after creation. Uniqueness is (date, name, amount).
    """

    date: FinancialDate
    name: str
    amount: int
    unit_price: Decimal | None
    quantity: int | None
    ticker: str

    @classmethod
    def from_fund_purchase(cls, purchase: FundPurchase, unit_price: int, quantity: int) -> "LedgerRecord":
        return cls(
            date=purchase.occurred_on,
            name=purchase.display_name,
            amount=purchase.amount.to_yen(),
            unit_price=Decimal(unit_price),
            quantity=quantity,
            ticker=purchase.ticker,
        )

    @classmethod
    def from_trade(cls, trade: SecurityTrade) -> "LedgerRecord":
        # Quantity is stored signed so per-ticker sums net out sales
        quantity = trade.quantity
        if quantity is not None and trade.action == TradeAction.SELL:
            quantity = -quantity
        return cls(
            date=trade.occurred_on,
            name=trade.security_name,
            amount=trade.amount.to_yen(),
            unit_price=trade.unit_price,
            quantity=quantity,
            ticker=trade.ticker,
        )

    @property
    def dedup_key(self) -> tuple[str, str, int]:
        return (self.date.to_slash_string(), self.name, self.amount)

    def to_row(self) -> dict[str, Any]:
        return {
            "date": self.date.to_slash_string(),
            "name": self.name,
            "amount": self.amount,
            "unit_price": _price_to_cell(self.unit_price),
            "quantity": self.quantity,
            "ticker": self.ticker,
        }

    def to_dict(self) -> dict[str, Any]:
        """API representation (camelCase keys, as the dashboard expects)."""
        row = self.to_row()
        return {
            "date": row["date"],
            "name": row["name"],
            "amount": row["amount"],
            "unitPrice": row["unit_price"],
            "quantity": row["quantity"],
            "ticker": row["ticker"],
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "LedgerRecord":
        unit_price = row.get("unit_price")
        quantity = row.get("quantity")
        return cls(
            date=FinancialDate.from_string(str(row["date"]), "%Y/%m/%d"),
            name=_text_from_cell(row["name"]),
            amount=int(row["amount"]),
            unit_price=Decimal(str(unit_price)) if unit_price is not None else None,
            quantity=int(quantity) if quantity is not None else None,
            ticker=_text_from_cell(row["ticker"]),
        )


@dataclass(frozen=True)
class BankLedgerRecord:
    """Bank ledger row. Running balance is derived by the store."""

    date: FinancialDate
    description: str
    deposit: int = 0
    withdrawal: int = 0
    running_balance: int | None = None

    @classmethod
    def from_movement(cls, movement: BankMovement) -> "BankLedgerRecord":
        amount = movement.amount.to_yen()
        return cls(
            date=movement.occurred_on,
            description=movement.description,
            deposit=amount if amount > 0 else 0,
            withdrawal=-amount if amount < 0 else 0,
        )

    @property
    def signed_amount(self) -> int:
        return self.deposit - self.withdrawal

    @property
    def dedup_key(self) -> tuple[str, str, int]:
        return (self.date.to_slash_string(), self.description, self.signed_amount)

    def to_row(self) -> dict[str, Any]:
        return {
            "date": self.date.to_slash_string(),
            "description": self.description,
            "deposit": self.deposit,
            "withdrawal": self.withdrawal,
            "running_balance": self.running_balance,
        }

    def to_dict(self) -> dict[str, Any]:
        row = self.to_row()
        row["runningBalance"] = row.pop("running_balance")
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "BankLedgerRecord":
        balance = row.get("running_balance")
        return cls(
            date=FinancialDate.from_string(str(row["date"]), "%Y/%m/%d"),
            description=_text_from_cell(row["description"]),
            deposit=int(row.get("deposit") or 0),
            withdrawal=int(row.get("withdrawal") or 0),
            running_balance=int(balance) if balance is not None else None,
        )


@dataclass(frozen=True)
class ExpenseRecord:
    """Persisted card charge. Uniqueness is (date, merchant, amount)."""

    date: FinancialDate
    merchant: str
    amount: int
    payment_method: str
    is_preliminary: bool = False

    @classmethod
    def from_charge(cls, charge: CardCharge) -> "ExpenseRecord":
        return cls(
            date=charge.occurred_on,
            merchant=charge.merchant,
            amount=charge.amount.to_yen(),
            payment_method=charge.payment_method,
            is_preliminary=charge.is_preliminary_notice,
        )

    @property
    def dedup_key(self) -> tuple[str, str, int]:
        return (self.date.to_slash_string(), self.merchant, self.amount)

    def to_row(self) -> dict[str, Any]:
        return {
            "date": self.date.to_slash_string(),
            "merchant": self.merchant,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "is_preliminary": self.is_preliminary,
        }

    def to_dict(self) -> dict[str, Any]:
        row = self.to_row()
        row["paymentMethod"] = row.pop("payment_method")
        row["isPreliminary"] = row.pop("is_preliminary")
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ExpenseRecord":
        preliminary = row.get("is_preliminary")
        if isinstance(preliminary, str):
            preliminary = preliminary.strip().lower() == "true"
        return cls(
            date=FinancialDate.from_string(str(row["date"]), "%Y/%m/%d"),
            merchant=_text_from_cell(row["merchant"]),
            amount=int(row["amount"]),
            payment_method=_text_from_cell(row.get("payment_method")),
            is_preliminary=bool(preliminary),
        )


@dataclass
class ItemResult:
    """Outcome of processing one message."""

    source: str
    message_key: str
    subject: str
    outcome: ItemOutcome
    detail: str | None = None


@dataclass
class RunSummary:
    """Statistics for one pipeline run."""

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None
    results: list[ItemResult] = field(default_factory=list)

    def add(self, result: ItemResult) -> None:
        self.results.append(result)

    def counts(self) -> Counter:
        return Counter(result.outcome for result in self.results)

    def counts_by_source(self) -> dict[str, dict[str, int]]:
        by_source: dict[str, dict[str, int]] = {}
        for result in self.results:
            source_counts = by_source.setdefault(result.source, {})
            source_counts[result.outcome.value] = source_counts.get(result.outcome.value, 0) + 1
        return by_source

    @property
    def fault_count(self) -> int:
        return self.counts()[ItemOutcome.FAULTED]

    @property
    def elapsed_ms(self) -> int | None:
        if self.finished_at is None:
            return None
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    def to_dict(self) -> dict[str, Any]:
        counts = self.counts()
        return {
            "total": len(self.results),
            **{outcome.value: counts[outcome] for outcome in ItemOutcome},
            "by_source": self.counts_by_source(),
            "elapsed_ms": self.elapsed_ms,
        }
