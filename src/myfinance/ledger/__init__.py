"""
Ledger Package

CSV-backed ledgers (pandas) and the LedgerService write/query surface.
"""

from .datastore import CsvLedgerStore
from .service import BALANCE_ADJUSTMENT_DESCRIPTION, LedgerService

__all__ = ["BALANCE_ADJUSTMENT_DESCRIPTION", "CsvLedgerStore", "LedgerService"]
