#!/usr/bin/env python3
"""
Main CLI Entry Point for MyFinance

Runs the reconciliation pipeline, queries the ledgers and serves the HTTP
facade.
"""

import logging
import os
import sys

import click

from ..core.config import Config, ConfigurationError
from ..core.json_utils import format_json
from ..core.models import ItemOutcome, SourceKind
from ..core.notifications import build_notifier
from ..ledger import LedgerService
from ..mailbox import ImapMailbox, MailboxError, ProcessedMessageStore
from ..pricing import PriceClient
from ..reconcile import ReconciliationOrchestrator


def _ledger(config: Config, with_prices: bool = False) -> LedgerService:
    price_client = PriceClient(config.price) if with_prices else None
    try:
        return LedgerService.from_config(config, price_client=price_client)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    MyFinance - Personal Finance Notification Ledger

    Turns fund, bank, brokerage and card notification emails into
    de-duplicated ledger records.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["MYFINANCE_ENV"] = config_env
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"

    try:
        config_obj = Config.from_environment()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    config_obj.setup_logging()
    if debug:
        logging.getLogger("myfinance").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = config_obj

    if verbose:
        click.echo(f"Environment: {config_obj.environment.value}")
        click.echo(f"Ledger directory: {config_obj.ledger.ledger_dir}")


@main.command()
@click.option(
    "--source",
    "sources",
    type=click.Choice([kind.value for kind in SourceKind]),
    multiple=True,
    help="Only process these sources (repeatable; default: all)",
)
@click.pass_context
def run(ctx: click.Context, sources: tuple[str, ...]) -> None:
    """Process unread notifications into the ledgers."""
    config_obj: Config = ctx.obj["config"]
    notifier = build_notifier(config_obj.notification)
    price_client = PriceClient(config_obj.price)
    mailbox = ImapMailbox(config_obj.mailbox)

    try:
        ledger = LedgerService.from_config(config_obj, price_client=price_client)
        processed_store = ProcessedMessageStore(ledger.ledger_dir / config_obj.ledger.processed_file)
        orchestrator = ReconciliationOrchestrator(
            config_obj,
            mailbox,
            ledger,
            price_client,
            processed_store,
            notifier,
            sources={SourceKind(source) for source in sources} or None,
        )
        summary = orchestrator.run()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except MailboxError as e:
        click.echo(f"Mailbox error: {e}", err=True)
        sys.exit(1)
    finally:
        mailbox.disconnect()
        price_client.close()

    click.echo("Run complete:")
    for source, counts in summary.counts_by_source().items():
        details = ", ".join(f"{outcome}={count}" for outcome, count in sorted(counts.items()))
        click.echo(f"  {source}: {details}")
    totals = summary.counts()
    click.echo(
        f"  total: {len(summary.results)} "
        f"(written={totals[ItemOutcome.WRITTEN]}, duplicate={totals[ItemOutcome.DUPLICATE]}, "
        f"faulted={totals[ItemOutcome.FAULTED]})"
    )
    if ctx.obj["verbose"]:
        for result in summary.results:
            click.echo(f"    [{result.outcome.value}] {result.source}: {result.subject}")


@main.command()
@click.option(
    "--ledger",
    "ledger_name",
    type=click.Choice(["fund", "bank", "expense"]),
    default="fund",
    show_default=True,
    help="Which ledger to list",
)
@click.pass_context
def records(ctx: click.Context, ledger_name: str) -> None:
    """List ledger records as JSON."""
    ledger = _ledger(ctx.obj["config"])
    listing = {
        "fund": ledger.list_fund_records,
        "bank": ledger.list_bank_records,
        "expense": ledger.list_expense_records,
    }[ledger_name]
    click.echo(format_json([record.to_dict() for record in listing()]))


@main.command()
@click.pass_context
def portfolio(ctx: click.Context) -> None:
    """Show per-ticker holdings valued at the latest price."""
    ledger = _ledger(ctx.obj["config"], with_prices=True)
    click.echo(format_json(ledger.portfolio_summary()))


@main.command()
@click.option("--adjust", type=int, help="Record an adjustment so the balance equals this amount")
@click.pass_context
def balance(ctx: click.Context, adjust: int | None) -> None:
    """Show the bank balance, optionally adjusting it to a known figure."""
    ledger = _ledger(ctx.obj["config"])

    if adjust is not None:
        record = ledger.adjust_bank_balance(adjust)
        if record is None:
            click.echo("Balance already matches, nothing recorded")
        else:
            click.echo(f"Recorded adjustment of {record.signed_amount:+,}")

    click.echo(format_json(ledger.current_bank_balance()))


@main.command()
@click.option("--host", help="Interface to bind (default: API_HOST)")
@click.option("--port", type=int, help="Port to listen on (default: API_PORT)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve the ledger query API."""
    from ..api import create_app

    config_obj: Config = ctx.obj["config"]
    ledger = _ledger(config_obj, with_prices=True)
    app = create_app(ledger, build_notifier(config_obj.notification))
    app.run(host=host or config_obj.api.host, port=port or config_obj.api.port, debug=config_obj.debug)


@main.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from myfinance import __author__, __version__

    click.echo(f"MyFinance v{__version__}")
    click.echo(f"Author: {__author__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration (secrets redacted)."""
    config_obj: Config = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Ledger Directory: {config_obj.ledger.ledger_dir}")
    click.echo(f"  Funds Configured: {len(config_obj.fund.mapping)}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")

    errors = config_obj.validate()
    for error in errors:
        click.echo(f"  ! {error}", err=True)

    if ctx.obj["verbose"]:
        click.echo(format_json(config_obj.to_dict()))


if __name__ == "__main__":
    main()
