#!/usr/bin/env python3
"""
Configuration Management for MyFinance

Builds one explicit configuration value from environment variables (and an
optional YAML fund table) at process start. The value is passed by reference
into the orchestrator, parsers, price client and ledger. Nothing looks
configuration up globally.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import FundInfo

# Load environment variables from .env file
load_dotenv()


class ConfigurationError(ValueError):
    """Required static configuration is missing or invalid."""


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


# Mail body keyword -> price source ticker. Longest keyword wins at match time.
DEFAULT_FUND_MAPPING: dict[str, FundInfo] = {
    "eMAXIS Slim 米国株式": FundInfo("0331418A", "eMAXIS Slim 米国株式(S&P500)"),
    "eMAXIS Slim 全世界株式": FundInfo("0331418B", "eMAXIS Slim 全世界株式(オール・カントリー)"),
    "eMAXIS Slim 先進国株式": FundInfo("0331418C", "eMAXIS Slim 先進国株式インデックス"),
    "eMAXIS Slim 国内株式": FundInfo("03311187", "eMAXIS Slim 国内株式(TOPIX)"),
    "eMAXIS Slim バランス": FundInfo("0331418D", "eMAXIS Slim バランス(8資産均等型)"),
    "ニッセイ外国株式": FundInfo("29313164", "<購入・換金手数料なし>ニッセイ外国株式インデックスファンド"),
    "SBI・V・S&P500": FundInfo("89311199", "SBI・V・S&P500インデックス・ファンド"),
    "SBI・V・全世界株式": FundInfo("89311209", "SBI・V・全世界株式インデックス・ファンド"),
    "楽天・全米株式": FundInfo("9I312179", "楽天・全米株式インデックス・ファンド"),
    "楽天・全世界株式": FundInfo("9I312189", "楽天・全世界株式インデックス・ファンド"),
}


@dataclass
class MailboxConfig:
    """IMAP mailbox settings."""

    imap_server: str = "imap.gmail.com"
    imap_port: int = 993
    username: str | None = None
    password: str | None = None
    folder: str = "INBOX"
    # Gmail X-GM-RAW search syntax; raw IMAP criteria otherwise
    gmail_search: bool = True
    timeout: int = 30


@dataclass
class FundSourceConfig:
    """Fund purchase notification source."""

    search_query: str = "subject:約定 newer_than:1d is:unread"
    max_items: int = 20
    mapping: dict[str, FundInfo] = field(default_factory=lambda: dict(DEFAULT_FUND_MAPPING))


@dataclass
class BankSourceConfig:
    """Bank deposit/withdrawal notification source."""

    search_query: str = "from:smbc.co.jp subject:三井住友銀行 newer_than:1d is:unread"
    max_items: int = 20
    sender_domain: str = "smbc.co.jp"
    subject_keyword: str = "三井住友銀行"
    initial_balance: int = 0
    # Duplicate scan looks at this many most recent rows
    dedup_window: int = 200


@dataclass
class BrokerProfile:
    """One brokerage whose execution notices are parsed."""

    name: str
    display_name: str
    domain: str
    search_query: str
    max_items: int = 20


@dataclass
class CardProfile:
    """One card issuer whose usage notices are parsed."""

    name: str
    display_name: str
    domain: str
    search_query: str
    max_items: int = 20


def default_broker_profiles() -> list[BrokerProfile]:
    return [
        BrokerProfile(
            name="rakuten",
            display_name="楽天証券",
            domain="rakuten-sec.co.jp",
            search_query="from:rakuten-sec.co.jp subject:約定 newer_than:1d is:unread",
        ),
        BrokerProfile(
            name="sbi",
            display_name="SBI証券",
            domain="sbisec.co.jp",
            search_query="from:sbisec.co.jp subject:約定 newer_than:1d is:unread",
        ),
    ]


def default_card_profiles() -> list[CardProfile]:
    return [
        CardProfile(
            name="rakuten",
            display_name="楽天カード",
            domain="rakuten-card.co.jp",
            search_query="from:rakuten-card.co.jp subject:カード利用 newer_than:1d is:unread",
        ),
    ]


@dataclass
class PriceSourceConfig:
    """Historical price (NAV) source settings."""

    base_url: str = "https://finance.yahoo.co.jp/quote/"
    history_suffix: str = "/history"
    request_delay: float = 2.0  # Seconds between fetches
    user_agent: str = "MyFinance/0.1 (personal ledger; NAV lookup once per purchase)"
    timeout: int = 30
    lookback_days: int = 7
    units_per_share_basis: int = 10000
    min_plausible_price: int = 100
    max_plausible_price: int = 999999
    proximity_window: int = 200


@dataclass
class LedgerConfig:
    """Ledger storage location."""

    ledger_dir: Path | None = None
    fund_file: str = "fund_log.csv"
    bank_file: str = "bank_log.csv"
    expense_file: str = "expense_log.csv"
    processed_file: str = "processed_messages.json"


@dataclass
class NotificationConfig:
    """Operator notification settings."""

    admin_email: str | None = None
    subject_prefix: str = "[MyFinance Alert]"
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_username: str | None = None
    smtp_password: str | None = None


@dataclass
class ApiConfig:
    """HTTP facade settings."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class Config:
    """
    Main configuration class for MyFinance.

    Loads configuration from environment variables with secure defaults
    and validation for each environment type.
    """

    environment: Environment
    data_dir: Path

    mailbox: MailboxConfig
    fund: FundSourceConfig
    bank: BankSourceConfig
    brokers: list[BrokerProfile]
    cards: list[CardProfile]
    price: PriceSourceConfig
    ledger: LedgerConfig
    notification: NotificationConfig
    api: ApiConfig

    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("MYFINANCE_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_myfinance"
            data_dir = Path(os.getenv("MYFINANCE_DATA_DIR", str(default_test_dir)))
        else:
            data_dir = Path(os.getenv("MYFINANCE_DATA_DIR", "./data")).expanduser().resolve()

        max_items = int(os.getenv("MAX_ITEMS_PER_SOURCE", "20"))

        mailbox = MailboxConfig(
            imap_server=os.getenv("EMAIL_IMAP_SERVER", "imap.gmail.com"),
            imap_port=int(os.getenv("EMAIL_IMAP_PORT", "993")),
            username=os.getenv("EMAIL_USERNAME"),
            password=os.getenv("EMAIL_PASSWORD"),
            folder=os.getenv("EMAIL_FOLDER", "INBOX"),
            gmail_search=os.getenv("EMAIL_GMAIL_SEARCH", "true").lower() == "true",
            timeout=int(os.getenv("EMAIL_TIMEOUT", "30")),
        )

        mapping_file = os.getenv("FUND_MAPPING_FILE")
        fund = FundSourceConfig(
            search_query=os.getenv("FUND_SEARCH_QUERY", FundSourceConfig.search_query),
            max_items=max_items,
            mapping=load_fund_mapping(Path(mapping_file)) if mapping_file else dict(DEFAULT_FUND_MAPPING),
        )

        bank = BankSourceConfig(
            search_query=os.getenv("BANK_SEARCH_QUERY", BankSourceConfig.search_query),
            max_items=max_items,
            initial_balance=int(os.getenv("BANK_INITIAL_BALANCE", "0")),
        )

        brokers = default_broker_profiles()
        cards = default_card_profiles()
        for profile in [*brokers, *cards]:
            profile.max_items = max_items

        price = PriceSourceConfig(
            base_url=os.getenv("PRICE_BASE_URL", PriceSourceConfig.base_url),
            history_suffix=os.getenv("PRICE_HISTORY_SUFFIX", PriceSourceConfig.history_suffix),
            request_delay=float(os.getenv("PRICE_REQUEST_DELAY", "2.0")),
            user_agent=os.getenv("PRICE_USER_AGENT", PriceSourceConfig.user_agent),
            timeout=int(os.getenv("PRICE_TIMEOUT", "30")),
        )

        ledger_dir = os.getenv("MYFINANCE_LEDGER_DIR")
        ledger = LedgerConfig(
            ledger_dir=Path(ledger_dir).expanduser() if ledger_dir else data_dir / "ledger",
        )

        notification = NotificationConfig(
            admin_email=os.getenv("NOTIFY_ADMIN_EMAIL"),
            smtp_server=os.getenv("SMTP_SERVER", "smtp.gmail.com"),
            smtp_port=int(os.getenv("SMTP_PORT", "465")),
            smtp_username=os.getenv("SMTP_USERNAME", os.getenv("EMAIL_USERNAME")),
            smtp_password=os.getenv("SMTP_PASSWORD", os.getenv("EMAIL_PASSWORD")),
        )

        api = ApiConfig(
            host=os.getenv("API_HOST", "127.0.0.1"),
            port=int(os.getenv("API_PORT", "8080")),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            mailbox=mailbox,
            fund=fund,
            bank=bank,
            brokers=brokers,
            cards=cards,
            price=price,
            ledger=ledger,
            notification=notification,
            api=api,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.mailbox.username and not self.mailbox.password:
            errors.append("EMAIL_PASSWORD is required when EMAIL_USERNAME is provided")

        try:
            if self.mailbox.imap_port <= 0 or self.mailbox.imap_port > 65535:
                errors.append("Email IMAP port must be 1-65535")
            if self.price.request_delay < 0:
                errors.append("Price request delay must be non-negative")
            if self.price.timeout <= 0:
                errors.append("Price timeout must be positive")
            if self.price.min_plausible_price >= self.price.max_plausible_price:
                errors.append("Plausible price band is empty")
            if self.fund.max_items <= 0:
                errors.append("MAX_ITEMS_PER_SOURCE must be positive")
        except (ValueError, TypeError) as e:
            errors.append(f"Invalid numeric configuration: {e}")

        return errors

    def run_errors(self) -> list[str]:
        """Errors that make a pipeline run impossible."""
        errors = self.validate()
        if self.ledger.ledger_dir is None:
            errors.append("Ledger location is not configured (MYFINANCE_LEDGER_DIR)")
        if not self.mailbox.username or not self.mailbox.password:
            errors.append("Mailbox credentials are not configured (EMAIL_USERNAME / EMAIL_PASSWORD)")
        if not self.fund.mapping:
            errors.append("Fund keyword table is empty")
        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

        # Reduce noise from external libraries in production
        if self.environment == Environment.PRODUCTION:
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("requests").setLevel(logging.WARNING)

    def get_sensitive_fields(self) -> list[str]:
        """Get list of field names that contain sensitive data."""
        return [
            "mailbox.password",
            "mailbox.username",
            "notification.smtp_password",
            "notification.smtp_username",
        ]

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert configuration to dictionary, optionally excluding sensitive data."""
        return {
            field_name: self._convert(field_name, field_value, include_sensitive)
            for field_name, field_value in self.__dict__.items()
        }

    def _convert(self, name: str, value: Any, include_sensitive: bool) -> Any:
        if not include_sensitive and name in self.get_sensitive_fields():
            return "***REDACTED***" if value else value
        if isinstance(value, FundInfo):
            return {"ticker": value.ticker, "display_name": value.display_name}
        if hasattr(value, "__dict__"):
            return {
                nested_name: self._convert(f"{name}.{nested_name}", nested_value, include_sensitive)
                for nested_name, nested_value in value.__dict__.items()
            }
        if isinstance(value, dict):
            return {key: self._convert(name, item, include_sensitive) for key, item in value.items()}
        if isinstance(value, list):
            return [self._convert(name, item, include_sensitive) for item in value]
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        return value


def load_fund_mapping(path: Path) -> dict[str, FundInfo]:
    """
    Load the fund keyword table from YAML.

    Expected layout:

        eMAXIS Slim 米国株式:
          ticker: "0331418A"  # quote tickers so leading zeros survive
          display_name: eMAXIS Slim 米国株式(S&P500)

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    if not path.exists():
        raise ConfigurationError(f"Fund mapping file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Fund mapping file must contain a mapping: {path}")

    mapping: dict[str, FundInfo] = {}
    for keyword, entry in data.items():
        if not isinstance(entry, dict) or "ticker" not in entry:
            raise ConfigurationError(f"Fund mapping entry {keyword!r} needs a ticker")
        mapping[str(keyword)] = FundInfo(
            ticker=str(entry["ticker"]),
            display_name=str(entry.get("display_name", keyword)),
        )
    return mapping
