#!/usr/bin/env python3
"""
Ledger Service

Write and query surface over the three ledgers kept in the ledger directory:

- fund ledger: fund purchases and securities trades (LedgerRecord)
- bank ledger: bank movements with a derived running balance (BankLedgerRecord)
- expense ledger: card charges (ExpenseRecord)

Writers report duplicates by returning False. Readers build the portfolio
valuation and bank balance served by the HTTP facade and the CLI.
"""

import logging
from decimal import Decimal
from typing import Any

import pandas as pd

from ..core.config import Config, ConfigurationError, LedgerConfig
from ..core.currency import round_half_up
from ..core.dates import FinancialDate
from ..core.models import BankLedgerRecord, ExpenseRecord, LedgerRecord
from ..pricing import FUND_UNITS_BASIS, PriceClient, PriceSourceError
from .datastore import CsvLedgerStore

logger = logging.getLogger(__name__)

FUND_COLUMNS = ["date", "name", "amount", "unit_price", "quantity", "ticker"]
BANK_COLUMNS = ["date", "description", "deposit", "withdrawal", "running_balance"]
EXPENSE_COLUMNS = ["date", "merchant", "amount", "payment_method", "is_preliminary"]

FUND_KEY = ["date", "name", "amount"]
BANK_KEY = ["date", "description", "deposit", "withdrawal"]
EXPENSE_KEY = ["date", "merchant", "amount"]

BALANCE_ADJUSTMENT_DESCRIPTION = "残高調整"


class LedgerService:
    """
    Ledger writes and queries.

    Holdings whose ticker is in `fund_tickers` are valued per 10,000 units
    (investment trusts); every other ticker is valued per share.
    """

    def __init__(
        self,
        config: LedgerConfig,
        initial_balance: int = 0,
        dedup_window: int = 200,
        price_client: PriceClient | None = None,
        fund_tickers: set[str] | None = None,
        units_basis: int = FUND_UNITS_BASIS,
    ):
        if config.ledger_dir is None:
            raise ConfigurationError("Ledger location is not configured (MYFINANCE_LEDGER_DIR)")

        self.config = config
        self.ledger_dir = config.ledger_dir
        self.initial_balance = initial_balance
        self.dedup_window = dedup_window
        self.price_client = price_client
        self.fund_tickers = fund_tickers or set()
        self.units_basis = units_basis

        self.fund_store = CsvLedgerStore(config.ledger_dir / config.fund_file, FUND_COLUMNS)
        self.bank_store = CsvLedgerStore(config.ledger_dir / config.bank_file, BANK_COLUMNS)
        self.expense_store = CsvLedgerStore(config.ledger_dir / config.expense_file, EXPENSE_COLUMNS)

    @classmethod
    def from_config(cls, config: Config, price_client: PriceClient | None = None) -> "LedgerService":
        return cls(
            config.ledger,
            initial_balance=config.bank.initial_balance,
            dedup_window=config.bank.dedup_window,
            price_client=price_client,
            fund_tickers={info.ticker for info in config.fund.mapping.values()},
            units_basis=config.price.units_per_share_basis,
        )

    # ── Writes ────────────────────────────────────────────────────────

    def append_fund_record(self, record: LedgerRecord) -> bool:
        """Append a fund purchase or trade. Returns False for a duplicate (date, name, amount)."""
        written = self.fund_store.append(record.to_row(), key_columns=FUND_KEY)
        if written:
            logger.info(f"Recorded {record.name} {record.date} ¥{record.amount:,}")
        else:
            logger.info(f"Duplicate fund record skipped: {record.dedup_key}")
        return written

    def _with_running_balance(self, frame: pd.DataFrame) -> pd.DataFrame:
        deposits = pd.to_numeric(frame["deposit"], errors="coerce").fillna(0).astype("int64")
        withdrawals = pd.to_numeric(frame["withdrawal"], errors="coerce").fillna(0).astype("int64")
        frame["running_balance"] = (self.initial_balance + (deposits - withdrawals).cumsum()).astype(str)
        return frame

    def append_bank_record(self, record: BankLedgerRecord) -> bool:
        """
        Append a bank movement and recompute running balances.

        The duplicate scan covers only the most recent `dedup_window` rows.
        """
        written = self.bank_store.append(
            record.to_row(),
            key_columns=BANK_KEY,
            window=self.dedup_window,
            transform=self._with_running_balance,
        )
        if written:
            logger.info(f"Recorded bank movement {record.date} {record.description} {record.signed_amount:+,}")
        else:
            logger.info(f"Duplicate bank record skipped: {record.dedup_key}")
        return written

    def append_expense_record(self, record: ExpenseRecord) -> bool:
        """Append a card charge. Returns False for a duplicate (date, merchant, amount)."""
        written = self.expense_store.append(record.to_row(), key_columns=EXPENSE_KEY)
        if written:
            logger.info(f"Recorded expense {record.date} {record.merchant} ¥{record.amount:,}")
        else:
            logger.info(f"Duplicate expense record skipped: {record.dedup_key}")
        return written

    # ── Reads ─────────────────────────────────────────────────────────

    def list_fund_records(self) -> list[LedgerRecord]:
        return [LedgerRecord.from_row(row) for row in self.fund_store.rows()]

    def list_bank_records(self) -> list[BankLedgerRecord]:
        return [BankLedgerRecord.from_row(row) for row in self.bank_store.rows()]

    def list_expense_records(self) -> list[ExpenseRecord]:
        return [ExpenseRecord.from_row(row) for row in self.expense_store.rows()]

    def _latest_price(self, ticker: str) -> tuple[int | None, str | None]:
        if self.price_client is None:
            return None, None
        try:
            lookup = self.price_client.latest_price(ticker)
        except PriceSourceError as e:
            logger.warning(f"Could not value {ticker}: {e}")
            return None, None
        if not lookup.is_found:
            return None, None
        return lookup.price, lookup.as_of.to_slash_string() if lookup.as_of else None

    def portfolio_summary(self) -> list[dict[str, Any]]:
        """
        Per-ticker holdings with current valuation.

        Value fields (latest_price, current_value, profit_loss, profit_loss_rate)
        are None when no current price can be obtained, and always for trades
        recorded without a ticker.
        """
        frame = self.fund_store.load_frame()
        if frame.empty:
            return []

        frame["amount"] = pd.to_numeric(frame["amount"], errors="coerce").fillna(0).astype("int64")
        frame["quantity"] = pd.to_numeric(frame["quantity"], errors="coerce").fillna(0).astype("int64")
        # trades without a code are held per security name and never priced
        frame["holding"] = frame["ticker"].where(frame["ticker"] != "", "name:" + frame["name"])
        holdings = frame.groupby("holding", sort=False).agg(
            ticker=("ticker", "first"),
            name=("name", "first"),
            total_invested=("amount", "sum"),
            total_units=("quantity", "sum"),
            trade_count=("amount", "size"),
        )

        summary = []
        for _, holding in holdings.iterrows():
            ticker = holding["ticker"]
            total_invested = int(holding["total_invested"])
            total_units = int(holding["total_units"])
            latest_price, price_date = self._latest_price(ticker) if ticker else (None, None)

            current_value = profit_loss = profit_loss_rate = None
            if latest_price is not None:
                basis = self.units_basis if ticker in self.fund_tickers else 1
                current_value = round_half_up(Decimal(total_units) * latest_price / basis)
                profit_loss = current_value - total_invested
                if total_invested:
                    profit_loss_rate = f"{Decimal(profit_loss) / Decimal(total_invested) * 100:.2f}"

            summary.append(
                {
                    "name": holding["name"],
                    "ticker": ticker,
                    "total_invested": total_invested,
                    "total_units": total_units,
                    "latest_price": latest_price,
                    "price_date": price_date,
                    "current_value": current_value,
                    "profit_loss": profit_loss,
                    "profit_loss_rate": profit_loss_rate,
                    "trade_count": int(holding["trade_count"]),
                }
            )
        return summary

    def current_bank_balance(self) -> dict[str, Any]:
        """Latest running balance and the date of the row that produced it."""
        records = self.list_bank_records()
        if not records:
            return {"balance": self.initial_balance, "last_updated": None}
        last = records[-1]
        balance = last.running_balance if last.running_balance is not None else self.initial_balance
        return {"balance": balance, "last_updated": last.date.to_slash_string()}

    def adjust_bank_balance(self, target: int) -> BankLedgerRecord | None:
        """
        Bring the running balance to `target` with a synthetic adjustment row.

        The adjustment bypasses the duplicate scan, so two identical
        adjustments on the same day are both kept.

        Returns:
            The adjustment record, or None when the balance already matches
        """
        current = self.current_bank_balance()["balance"]
        delta = target - current
        if delta == 0:
            logger.info(f"Bank balance already {target:,}, no adjustment needed")
            return None

        record = BankLedgerRecord(
            date=FinancialDate.today(),
            description=BALANCE_ADJUSTMENT_DESCRIPTION,
            deposit=delta if delta > 0 else 0,
            withdrawal=-delta if delta < 0 else 0,
            running_balance=target,
        )
        self.bank_store.append(record.to_row(), transform=self._with_running_balance)
        logger.info(f"Adjusted bank balance from {current:,} to {target:,} ({delta:+,})")
        return record
