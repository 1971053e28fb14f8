"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

from myfinance.core.config import (
    ApiConfig,
    BankSourceConfig,
    Config,
    Environment,
    FundSourceConfig,
    LedgerConfig,
    MailboxConfig,
    NotificationConfig,
    PriceSourceConfig,
    default_broker_profiles,
    default_card_profiles,
)
from myfinance.core.models import FundInfo


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def fund_mapping() -> dict[str, FundInfo]:
    """Small fund keyword table with one keyword that prefixes another."""
    return {
        "Fund A": FundInfo("X1", "Fund A Display"),
        "Fund A Global": FundInfo("X2", "Fund A Global Display"),
        "eMAXIS Slim 米国株式": FundInfo("0331418A", "eMAXIS Slim 米国株式(S&P500)"),
    }


@pytest.fixture
def test_config(temp_dir, fund_mapping) -> Config:
    """Complete configuration pointing at a temporary ledger directory."""
    return Config(
        environment=Environment.TEST,
        data_dir=temp_dir,
        mailbox=MailboxConfig(username="user@example.com", password="app-password"),  # noqa: S106
        fund=FundSourceConfig(mapping=fund_mapping),
        bank=BankSourceConfig(initial_balance=100000),
        brokers=default_broker_profiles(),
        cards=default_card_profiles(),
        price=PriceSourceConfig(request_delay=0),
        ledger=LedgerConfig(ledger_dir=temp_dir / "ledger"),
        notification=NotificationConfig(),
        api=ApiConfig(),
    )


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data or real credentials
    monkeypatch.setenv("MYFINANCE_ENV", "test")
    monkeypatch.setenv("MYFINANCE_DATA_DIR", str(tmp_path / "data"))
    for name in (
        "MYFINANCE_LEDGER_DIR",
        "FUND_MAPPING_FILE",
        "NOTIFY_ADMIN_EMAIL",
        "EMAIL_USERNAME",
        "EMAIL_PASSWORD",
        "SMTP_USERNAME",
        "SMTP_PASSWORD",
        "LOG_LEVEL",
        "DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for yen amount handling")
    config.addinivalue_line("markers", "parsers: Tests for notification parsers")
    config.addinivalue_line("markers", "pricing: Tests for price lookup and extraction")
    config.addinivalue_line("markers", "ledger: Tests for ledger storage and queries")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
