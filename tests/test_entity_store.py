"""
Tests for the entity store.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.entities import Account, Category, CategoryType, Transaction
from finance_tracker.services.storage import InMemoryCollectionStorage, StorageError
from finance_tracker.store import DEFAULT_ACCOUNTS, DEFAULT_CATEGORIES, EntityKind, EntityStore


class FailingStorage(InMemoryCollectionStorage):
    """Refuses to save one collection."""

    def __init__(self, failing: str, initial=None):
        super().__init__(initial)
        self.failing = failing
        self.armed = False

    def save(self, name, records):
        if self.armed and name == self.failing:
            raise StorageError(f"disk full while writing {name}")
        super().save(name, records)


class TestLoading:
    """Tests for building a store from a backend."""

    def test_builtin_defaults_on_fresh_backend(self):
        """A backend that never saved anything yields the seed data."""
        store = EntityStore(InMemoryCollectionStorage())
        assert [a.id for a in store.list(EntityKind.ACCOUNTS)] == ["acc-1", "acc-2", "acc-3"]
        assert len(store.list(EntityKind.CATEGORIES)) == len(DEFAULT_CATEGORIES)
        assert store.list(EntityKind.TRANSACTIONS) == []
        assert store.list(EntityKind.BUDGETS) == []

    def test_seed_accounts(self):
        balances = {a.id: a.balance for a in DEFAULT_ACCOUNTS}
        assert balances == {
            "acc-1": Decimal("10000000"),
            "acc-2": Decimal("500000"),
            "acc-3": Decimal("200000"),
        }

    def test_saved_collections_win_over_defaults(self):
        storage = InMemoryCollectionStorage({
            "accounts": [{"id": "x", "name": "Saved", "type": "cash", "balance": "42"}],
        })
        store = EntityStore(storage)
        accounts = store.list(EntityKind.ACCOUNTS)
        assert [a.id for a in accounts] == ["x"]
        assert accounts[0].opening_balance == Decimal("42")
        # Unsaved collections still fall back to defaults
        assert len(store.list(EntityKind.CATEGORIES)) == len(DEFAULT_CATEGORIES)

    def test_opening_balance_derived_for_records_saved_without_one(self):
        """The stored balance already includes history, so the opening balance excludes it."""
        storage = InMemoryCollectionStorage({
            "accounts": [
                {"id": "a1", "name": "Main", "balance": "950"},
                {"id": "a2", "name": "Savings", "balance": "300", "opening_balance": "100"},
            ],
            "transactions": [
                {"id": "t1", "date": "2024-01-05T00:00:00", "amount": "50",
                 "type": "expense", "category_id": "cat-food", "account_id": "a1"},
                {"id": "t2", "date": "2024-01-06T00:00:00", "amount": "200",
                 "type": "income", "category_id": "cat-salary", "account_id": "a2"},
            ],
        })
        store = EntityStore(storage)
        a1 = store.require(EntityKind.ACCOUNTS, "a1")
        assert a1.balance == Decimal("950")
        assert a1.opening_balance == Decimal("1000")
        assert store.require(EntityKind.ACCOUNTS, "a2").opening_balance == Decimal("100")

    def test_empty_saved_collection_is_not_defaulted(self):
        store = EntityStore(InMemoryCollectionStorage({"accounts": []}))
        assert store.list(EntityKind.ACCOUNTS) == []

    def test_invalid_record_raises_storage_error(self):
        storage = InMemoryCollectionStorage({
            "transactions": [{"id": "t1", "date": "not a date", "amount": "5"}],
        })
        with pytest.raises(StorageError):
            EntityStore(storage)


class TestCrud:
    """Tests for list/get/put/remove."""

    def test_get_and_require(self, store):
        assert store.get(EntityKind.ACCOUNTS, "acc-a").name == "Wallet A"
        assert store.get(EntityKind.ACCOUNTS, "missing") is None
        with pytest.raises(NotFoundError):
            store.require(EntityKind.ACCOUNTS, "missing")

    def test_put_assigns_id(self, store):
        stored = store.put(EntityKind.CATEGORIES, Category(name="Pets"))
        assert stored.id
        assert store.contains(EntityKind.CATEGORIES, stored.id)

    def test_generated_ids_are_unique(self, store):
        ids = {store.generate_id() for _ in range(100)}
        assert len(ids) == 100

    def test_put_replaces_in_place(self, store):
        """Replacing keeps the record's position in the collection."""
        store.put(EntityKind.ACCOUNTS, Account(id="acc-a", name="Renamed", balance=Decimal("1000")))
        accounts = store.list(EntityKind.ACCOUNTS)
        assert [a.id for a in accounts] == ["acc-a", "acc-b"]
        assert accounts[0].name == "Renamed"

    def test_put_appends_unknown_id(self, store):
        store.put(EntityKind.ACCOUNTS, Account(id="acc-c", name="New"))
        assert [a.id for a in store.list(EntityKind.ACCOUNTS)] == ["acc-a", "acc-b", "acc-c"]

    def test_put_rejects_wrong_record_type(self, store):
        with pytest.raises(TypeError):
            store.put(EntityKind.ACCOUNTS, Category(id="c", name="Not an account"))

    def test_remove(self, store):
        removed = store.remove(EntityKind.ACCOUNTS, "acc-b")
        assert removed.id == "acc-b"
        assert not store.contains(EntityKind.ACCOUNTS, "acc-b")

    def test_remove_missing_raises(self, store):
        with pytest.raises(NotFoundError):
            store.remove(EntityKind.BUDGETS, "missing")

    def test_list_is_a_snapshot(self, store):
        accounts = store.list(EntityKind.ACCOUNTS)
        accounts.clear()
        assert len(store.list(EntityKind.ACCOUNTS)) == 2

    def test_every_mutation_is_saved(self, store, storage):
        before = storage.save_count
        store.put(EntityKind.CATEGORIES, Category(name="Pets", type=CategoryType.EXPENSE))
        assert storage.save_count == before + 1
        assert any(c["name"] == "Pets" for c in storage.load("categories"))

    def test_saved_records_are_json_compatible(self, store, storage):
        store.put(EntityKind.TRANSACTIONS, Transaction(
            id="t1", date=datetime(2024, 1, 5), amount=Decimal("12.50"),
            category_id="cat-food", account_id="acc-a",
        ))
        record = storage.load("transactions")[0]
        assert record["amount"] == "12.50"
        assert record["date"] == "2024-01-05T00:00:00"

    def test_replace_all_rejects_duplicate_ids(self, store):
        with pytest.raises(ValueError):
            store.replace_all(EntityKind.ACCOUNTS, [
                Account(id="dup", name="One"),
                Account(id="dup", name="Two"),
            ])
        assert [a.id for a in store.list(EntityKind.ACCOUNTS)] == ["acc-a", "acc-b"]


class TestCommit:
    """Tests for multi-collection commits."""

    def test_failed_save_restores_memory(self, seed):
        storage = FailingStorage("accounts")
        store = EntityStore(storage, defaults=seed)
        storage.armed = True

        transaction = Transaction(
            id="t1", date=datetime(2024, 1, 5), amount=Decimal("10"),
            category_id="cat-food", account_id="acc-a",
        )
        with pytest.raises(StorageError):
            store.commit({
                EntityKind.TRANSACTIONS: [transaction],
                EntityKind.ACCOUNTS: [Account(id="acc-a", name="Wallet A", balance=Decimal("990"))],
            })

        assert store.list(EntityKind.TRANSACTIONS) == []
        assert [a.balance for a in store.list(EntityKind.ACCOUNTS)] == [Decimal("1000"), Decimal("500")]

    def test_reset_restores_defaults(self, store, storage):
        store.remove(EntityKind.ACCOUNTS, "acc-a")
        store.put(EntityKind.CATEGORIES, Category(name="Pets"))

        store.reset()

        assert [a.id for a in store.list(EntityKind.ACCOUNTS)] == ["acc-a", "acc-b"]
        assert len(store.list(EntityKind.CATEGORIES)) == 3
        assert [a["id"] for a in storage.load("accounts")] == ["acc-a", "acc-b"]
