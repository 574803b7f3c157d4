"""
Shared fixtures.

Every test gets its own in-memory backend seeded with two small accounts
and three categories, so balances are easy to follow by hand.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.ledger import LedgerEngine
from finance_tracker.models.entities import (
    Account,
    AccountType,
    Category,
    CategoryType,
    TransactionDraft,
)
from finance_tracker.services.storage import InMemoryAuditStorage, InMemoryCollectionStorage
from finance_tracker.store import EntityKind, EntityStore


@pytest.fixture
def seed():
    return {
        EntityKind.ACCOUNTS: [
            Account(id="acc-a", name="Wallet A", type=AccountType.BANK, balance=Decimal("1000")),
            Account(id="acc-b", name="Wallet B", type=AccountType.CASH, balance=Decimal("500")),
        ],
        EntityKind.CATEGORIES: [
            Category(id="cat-food", name="Food", type=CategoryType.EXPENSE, color="text-red-500"),
            Category(id="cat-fun", name="Fun", type=CategoryType.EXPENSE, color="text-purple-500"),
            Category(id="cat-salary", name="Salary", type=CategoryType.INCOME, color="text-emerald-500"),
        ],
        EntityKind.TRANSACTIONS: [],
        EntityKind.BUDGETS: [],
    }


@pytest.fixture
def storage():
    return InMemoryCollectionStorage()


@pytest.fixture
def store(storage, seed):
    return EntityStore(storage, defaults=seed)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def ledger(store, audit_logger):
    return LedgerEngine(store, audit_logger=audit_logger)


@pytest.fixture
def make_draft():
    """Factory for valid expense drafts; override any field by keyword."""
    def _make(**overrides):
        fields = {
            "date": datetime(2024, 3, 10),
            "description": "Lunch",
            "amount": Decimal("100"),
            "type": CategoryType.EXPENSE,
            "category_id": "cat-food",
            "account_id": "acc-a",
        }
        fields.update(overrides)
        return TransactionDraft(**fields)
    return _make
