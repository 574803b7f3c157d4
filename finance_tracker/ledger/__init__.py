"""Ledger engine package."""

from finance_tracker.ledger.engine import LedgerEngine

__all__ = ["LedgerEngine"]
