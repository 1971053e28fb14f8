"""
Reconciliation Package

The orchestrator that turns unread notifications into ledger rows.
"""

from .orchestrator import ReconciliationOrchestrator, SourceRun, build_source_runs

__all__ = ["ReconciliationOrchestrator", "SourceRun", "build_source_runs"]
