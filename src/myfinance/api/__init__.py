"""
HTTP API Package

Flask facade over the ledger query surface.
"""

from .app import create_app

__all__ = ["create_app"]
