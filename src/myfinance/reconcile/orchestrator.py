#!/usr/bin/env python3
"""
Reconciliation Orchestrator

Runs one pass of the pipeline: for each configured source, search the
mailbox, parse each message, enrich fund purchases with their unit price,
append to the ledger and mark the message processed.

Per-message outcomes:
- WRITTEN / DUPLICATE: recorded in the processed store and marked read
- ABSTAINED / NOT_YET_AVAILABLE / FAULTED: left unread for the next run
- ALREADY_PROCESSED: seen before; the read flag is re-synced and nothing is written

A failure while handling one message never stops the batch. Configuration
errors and mailbox search failures abort the run.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from ..core.config import Config, ConfigurationError
from ..core.json_utils import format_json
from ..core.models import (
    BankLedgerRecord,
    BankMovement,
    CardCharge,
    ExpenseRecord,
    ExtractedTransaction,
    FundPurchase,
    ItemOutcome,
    ItemResult,
    LedgerRecord,
    RawMessage,
    RunSummary,
    SecurityTrade,
    SourceKind,
)
from ..core.notifications import Notifier
from ..ledger import LedgerService
from ..mailbox import Mailbox, MessageQuery, ProcessedMessageStore
from ..parsers import BankTransferParser, BrokerTradeParser, CardChargeParser, FundPurchaseParser, SourceParser
from ..pricing import PriceClient, calculate_quantity

logger = logging.getLogger(__name__)


@dataclass
class SourceRun:
    """A parser paired with the mailbox query that feeds it."""

    parser: SourceParser
    query: MessageQuery


def build_source_runs(config: Config) -> list[SourceRun]:
    """Sources in pipeline order: fund, bank, each broker, each card issuer."""
    runs = [
        SourceRun(FundPurchaseParser(config.fund.mapping), MessageQuery(config.fund.search_query, config.fund.max_items)),
        SourceRun(BankTransferParser(config.bank), MessageQuery(config.bank.search_query, config.bank.max_items)),
    ]
    runs.extend(
        SourceRun(BrokerTradeParser(profile, config.fund.mapping), MessageQuery(profile.search_query, profile.max_items))
        for profile in config.brokers
    )
    runs.extend(
        SourceRun(CardChargeParser(profile), MessageQuery(profile.search_query, profile.max_items))
        for profile in config.cards
    )
    return runs


class ReconciliationOrchestrator:
    """Drives mailbox, parsers, price client and ledger through one run."""

    def __init__(
        self,
        config: Config,
        mailbox: Mailbox,
        ledger: LedgerService,
        price_client: PriceClient,
        processed_store: ProcessedMessageStore,
        notifier: Notifier,
        sources: set[SourceKind] | None = None,
    ):
        self.config = config
        self.mailbox = mailbox
        self.ledger = ledger
        self.price_client = price_client
        self.processed_store = processed_store
        self.notifier = notifier
        self.sources = sources

    def source_runs(self) -> list[SourceRun]:
        runs = build_source_runs(self.config)
        if self.sources is None:
            return runs
        return [run for run in runs if run.parser.source in self.sources]

    def run(self) -> RunSummary:
        """
        Execute one pipeline run.

        Raises:
            ConfigurationError: If the configuration cannot support a run
            MailboxError: If a mailbox search fails
        """
        errors = self.config.run_errors()
        if errors:
            logger.error(f"Configuration errors: {errors}")
            self.notifier.notify("Configuration error, run aborted", {"errors": errors})
            raise ConfigurationError("; ".join(errors))

        summary = RunSummary()
        logger.info("========== Reconciliation run started ==========")

        for source_run in self.source_runs():
            self._run_source(source_run, summary)

        summary.finished_at = datetime.now()
        logger.info(f"Run summary: {format_json(summary.to_dict())}")
        if summary.fault_count:
            logger.warning(f"{summary.fault_count} message(s) faulted and were left unread")
        logger.info(f"========== Reconciliation run finished ({summary.elapsed_ms}ms) ==========")
        return summary

    def _run_source(self, source_run: SourceRun, summary: RunSummary) -> None:
        parser, query = source_run.parser, source_run.query
        logger.info(f"[{parser.name}] Searching: {query.query}")

        try:
            messages = self.mailbox.search(query)
        except Exception as e:
            logger.exception(f"[{parser.name}] Mailbox search failed")
            self.notifier.notify("Mailbox search failed, run aborted", {"source": parser.name, "error": str(e)})
            raise

        for message in messages[: query.max_items]:
            try:
                result = self._process_message(parser, message)
            except Exception as e:
                logger.exception(f"[{parser.name}] Failed to process {message.subject!r}")
                self.notifier.notify(
                    "Failed to process notification",
                    {"source": parser.name, "subject": message.subject, "error": f"{type(e).__name__}: {e}"},
                )
                result = ItemResult(
                    source=parser.name,
                    message_key=message.idempotency_key,
                    subject=message.subject,
                    outcome=ItemOutcome.FAULTED,
                    detail=f"{type(e).__name__}: {e}",
                )
            summary.add(result)

    def _process_message(self, parser: SourceParser, message: RawMessage) -> ItemResult:
        key = message.idempotency_key

        def result(outcome: ItemOutcome, detail: str | None = None) -> ItemResult:
            return ItemResult(source=parser.name, message_key=key, subject=message.subject, outcome=outcome, detail=detail)

        if self.processed_store.contains(key):
            logger.info(f"[{parser.name}] Already processed, re-syncing read flag: {message.subject!r}")
            self.mailbox.mark_processed(message)
            return result(ItemOutcome.ALREADY_PROCESSED)

        if not parser.matches(message):
            logger.info(f"[{parser.name}] Not a {parser.source.value} notice, skipping: {message.subject!r}")
            return result(ItemOutcome.ABSTAINED, "not classified")

        transaction = parser.parse(message)
        if transaction is None:
            return result(ItemOutcome.ABSTAINED, "required field missing")

        outcome, detail = self._record(transaction)
        if outcome.marks_processed:
            self.processed_store.record(message, parser.name, outcome)
            self.mailbox.mark_processed(message)
        return result(outcome, detail)

    def _record(self, transaction: ExtractedTransaction) -> tuple[ItemOutcome, str | None]:
        if isinstance(transaction, FundPurchase):
            return self._record_fund_purchase(transaction)

        if isinstance(transaction, SecurityTrade):
            written = self.ledger.append_fund_record(LedgerRecord.from_trade(transaction))
        elif isinstance(transaction, BankMovement):
            written = self.ledger.append_bank_record(BankLedgerRecord.from_movement(transaction))
        elif isinstance(transaction, CardCharge):
            written = self.ledger.append_expense_record(ExpenseRecord.from_charge(transaction))
        else:
            raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")

        return (ItemOutcome.WRITTEN if written else ItemOutcome.DUPLICATE), None

    def _record_fund_purchase(self, purchase: FundPurchase) -> tuple[ItemOutcome, str | None]:
        lookup = self.price_client.lookup_price(purchase.ticker, purchase.occurred_on)
        if not lookup.is_found or lookup.price is None:
            logger.warning(
                f"Price for {purchase.fund_key} on {purchase.occurred_on} not available ({lookup.reason}), "
                "leaving message unread"
            )
            return ItemOutcome.NOT_YET_AVAILABLE, lookup.reason

        quantity = calculate_quantity(
            purchase.amount.to_yen(), lookup.price, basis=self.config.price.units_per_share_basis
        )
        record = LedgerRecord.from_fund_purchase(purchase, unit_price=lookup.price, quantity=quantity)
        written = self.ledger.append_fund_record(record)
        return (ItemOutcome.WRITTEN if written else ItemOutcome.DUPLICATE), None
