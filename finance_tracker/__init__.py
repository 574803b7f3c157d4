"""
Finance Tracker - Ledger Core

A single-user personal finance tracker core: accounts, categories,
transactions and budgets, with reporting projections on top.

DESIGN PRINCIPLES:
1. Account balances always agree with the transaction history
2. Money is Decimal, never float
3. Fail loudly: missing ids and guarded deletes are errors, not no-ops
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
