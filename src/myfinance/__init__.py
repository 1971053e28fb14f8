"""
MyFinance - Personal Finance Notification Ledger

Reads personal-finance notification emails (fund purchases, bank movements,
brokerage executions, card charges), enriches fund purchases with the unit
price they were bought at, and appends de-duplicated records to CSV ledgers.

Domain Packages:
- core: Configuration, dates, yen amounts, models, notifications
- extraction: Text normalization and field extractors
- parsers: One parser per notification family
- pricing: Historical price lookup and unit quantity derivation
- mailbox: IMAP mailbox and processed-message store
- ledger: CSV ledgers and the query surface
- reconcile: The pipeline run
- api: Flask facade for the dashboard
- cli: Command-line interface

Example Usage:
    from myfinance.core import Config
    from myfinance.pricing import calculate_quantity

    config = Config.from_environment()
    calculate_quantity(33333, 29850)  # 11167
"""

__version__ = "0.1.0"
__author__ = "MyFinance Developers"

from .core.config import Config, ConfigurationError, Environment
from .core.dates import FinancialDate
from .core.money import Money

__all__ = [
    "Config",
    "ConfigurationError",
    "Environment",
    "FinancialDate",
    "Money",
]
