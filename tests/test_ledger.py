"""
Tests for the ledger engine.

The central check is the balance invariant: after any sequence of
operations, every account's balance equals its opening balance plus the
signed amounts of its transactions.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from finance_tracker.exceptions import BalanceLockedError, EntityValidationError, NotFoundError
from finance_tracker.ledger import LedgerEngine
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.entities import Account, CategoryType, Transaction, TransactionDraft
from finance_tracker.services.storage import InMemoryCollectionStorage, StorageError
from finance_tracker.store import EntityKind, EntityStore


def balance(store, account_id):
    return store.require(EntityKind.ACCOUNTS, account_id).balance


def assert_invariant(ledger, store):
    for account in store.list(EntityKind.ACCOUNTS):
        assert account.balance == ledger.expected_balance(account.id), account.id


class TestAddTransaction:
    """Tests for recording transactions."""

    def test_expense_decreases_balance(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(amount=Decimal("250")))
        assert balance(store, "acc-a") == Decimal("750")

    def test_income_increases_balance(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(
            amount=Decimal("250"), type=CategoryType.INCOME, category_id="cat-salary",
        ))
        assert balance(store, "acc-a") == Decimal("1250")

    def test_returns_stored_transaction_with_id(self, ledger, store, make_draft):
        transaction = ledger.add_transaction(make_draft())
        assert transaction.id
        assert store.get(EntityKind.TRANSACTIONS, transaction.id) == transaction

    def test_newest_first(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(description="middle", date=datetime(2024, 3, 10)))
        ledger.add_transaction(make_draft(description="oldest", date=datetime(2024, 1, 1)))
        ledger.add_transaction(make_draft(description="newest", date=datetime(2024, 5, 1)))

        descriptions = [t.description for t in store.list(EntityKind.TRANSACTIONS)]
        assert descriptions == ["newest", "middle", "oldest"]

    def test_same_date_newer_entry_first(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(description="first"))
        ledger.add_transaction(make_draft(description="second"))

        descriptions = [t.description for t in store.list(EntityKind.TRANSACTIONS)]
        assert descriptions == ["second", "first"]

    def test_aware_date_sorts_with_naive(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(description="naive", date=datetime(2024, 3, 10, 12)))
        ledger.add_transaction(make_draft(
            description="aware", date=datetime(2024, 3, 10, 13, tzinfo=timezone.utc),
        ))

        transactions = store.list(EntityKind.TRANSACTIONS)
        assert [t.description for t in transactions] == ["aware", "naive"]
        assert transactions[0].date == datetime(2024, 3, 10, 13)

    @pytest.mark.parametrize("overrides,field", [
        ({"description": ""}, "description"),
        ({"amount": Decimal("0")}, "amount"),
        ({"amount": Decimal("-5")}, "amount"),
        ({"category_id": ""}, "category_id"),
        ({"account_id": ""}, "account_id"),
        ({"type": CategoryType.INCOME}, "type"),
    ])
    def test_invalid_draft_changes_nothing(self, ledger, store, make_draft, overrides, field):
        with pytest.raises(EntityValidationError) as exc_info:
            ledger.add_transaction(make_draft(**overrides))

        assert field in [issue.field for issue in exc_info.value.result.issues]
        assert store.list(EntityKind.TRANSACTIONS) == []
        assert balance(store, "acc-a") == Decimal("1000")

    def test_rejection_is_audited(self, ledger, make_draft, audit_storage):
        with pytest.raises(EntityValidationError):
            ledger.add_transaction(make_draft(description=""))
        events = audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.TRANSACTION_REJECTED

    def test_unknown_account_moves_no_balance(self, ledger, store, make_draft):
        """A dangling account reference is recorded but touches no balance."""
        transaction = ledger.add_transaction(make_draft(account_id="acc-gone"))
        assert store.contains(EntityKind.TRANSACTIONS, transaction.id)
        assert balance(store, "acc-a") == Decimal("1000")
        assert balance(store, "acc-b") == Decimal("500")

    def test_audited(self, ledger, make_draft, audit_storage):
        transaction = ledger.add_transaction(make_draft())
        events = audit_storage.get_events_by_entity("transaction", transaction.id)
        assert [e.event_type for e in events] == [AuditEventType.TRANSACTION_ADDED]


class TestUpdateTransaction:
    """Tests for replacing transactions."""

    def test_amount_change_same_account(self, ledger, store, make_draft):
        transaction = ledger.add_transaction(make_draft(amount=Decimal("100")))
        ledger.update_transaction(transaction.model_copy(update={"amount": Decimal("300")}))
        assert balance(store, "acc-a") == Decimal("700")

    def test_type_change_flips_impact(self, ledger, store, make_draft):
        transaction = ledger.add_transaction(make_draft(amount=Decimal("100")))
        ledger.update_transaction(transaction.model_copy(update={
            "type": CategoryType.INCOME,
            "category_id": "cat-salary",
        }))
        assert balance(store, "acc-a") == Decimal("1100")

    def test_move_between_accounts(self, seed):
        """A 1000 / B 500 with an expense of 200 on A; moving it to B gives 1200 / 300."""
        existing = Transaction(
            id="tx-1", date=datetime(2024, 3, 1), description="Groceries",
            amount=Decimal("200"), type=CategoryType.EXPENSE,
            category_id="cat-food", account_id="acc-a",
        )
        seed[EntityKind.ACCOUNTS][0] = Account(
            id="acc-a", name="Wallet A", balance=Decimal("1000"), opening_balance=Decimal("1200"),
        )
        seed[EntityKind.TRANSACTIONS] = [existing]
        store = EntityStore(InMemoryCollectionStorage(), defaults=seed)
        ledger = LedgerEngine(store)

        ledger.update_transaction(existing.model_copy(update={"account_id": "acc-b"}))

        assert balance(store, "acc-a") == Decimal("1200")
        assert balance(store, "acc-b") == Decimal("300")
        assert_invariant(ledger, store)

    def test_keeps_position_and_resorts(self, ledger, store, make_draft):
        old = ledger.add_transaction(make_draft(description="old", date=datetime(2024, 1, 1)))
        ledger.add_transaction(make_draft(description="new", date=datetime(2024, 2, 1)))

        ledger.update_transaction(old.model_copy(update={"date": datetime(2024, 3, 1)}))

        assert [t.description for t in store.list(EntityKind.TRANSACTIONS)] == ["old", "new"]

    def test_missing_id_raises(self, ledger, store, make_draft):
        ghost = Transaction.from_draft(make_draft(), "ghost")
        with pytest.raises(NotFoundError):
            ledger.update_transaction(ghost)
        assert store.list(EntityKind.TRANSACTIONS) == []
        assert balance(store, "acc-a") == Decimal("1000")

    def test_invalid_update_changes_nothing(self, ledger, store, make_draft):
        transaction = ledger.add_transaction(make_draft(amount=Decimal("100")))
        with pytest.raises(EntityValidationError):
            ledger.update_transaction(transaction.model_copy(update={"amount": Decimal("0")}))
        assert store.require(EntityKind.TRANSACTIONS, transaction.id).amount == Decimal("100")
        assert balance(store, "acc-a") == Decimal("900")


class TestDeleteTransaction:
    """Tests for removing transactions."""

    def test_add_then_delete_restores_state(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(description="keep", date=datetime(2024, 1, 1)))
        accounts_before = store.list(EntityKind.ACCOUNTS)
        transactions_before = store.list(EntityKind.TRANSACTIONS)

        added = ledger.add_transaction(make_draft(amount=Decimal("321.45"), account_id="acc-b"))
        ledger.delete_transaction(added.id)

        assert store.list(EntityKind.ACCOUNTS) == accounts_before
        assert store.list(EntityKind.TRANSACTIONS) == transactions_before

    def test_missing_id_raises(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.delete_transaction("missing")

    def test_concrete_scenario(self):
        """1 000 000 -> 950 000 -> 1 150 000 -> 1 200 000."""
        store = EntityStore(InMemoryCollectionStorage(), defaults={
            EntityKind.ACCOUNTS: [Account(id="a1", name="Main", balance=Decimal("1000000"))],
        })
        ledger = LedgerEngine(store)

        first = ledger.add_transaction(_draft("Belanja", "50000", CategoryType.EXPENSE))
        assert balance(store, "a1") == Decimal("950000")

        ledger.add_transaction(_draft("Gaji", "200000", CategoryType.INCOME))
        assert balance(store, "a1") == Decimal("1150000")

        ledger.delete_transaction(first.id)
        assert balance(store, "a1") == Decimal("1200000")


def _draft(description, amount, type_):
    return TransactionDraft(
        date=datetime(2024, 1, 15),
        description=description,
        amount=Decimal(amount),
        type=type_,
        category_id="cat-x",
        account_id="a1",
    )


class TestInvariant:
    """The balance invariant over a mixed sequence of operations."""

    def test_invariant_after_every_step(self, ledger, store, make_draft):
        a = ledger.add_transaction(make_draft(amount=Decimal("120.50")))
        assert_invariant(ledger, store)
        b = ledger.add_transaction(make_draft(
            amount=Decimal("900"), type=CategoryType.INCOME, category_id="cat-salary", account_id="acc-b",
        ))
        assert_invariant(ledger, store)
        ledger.update_transaction(a.model_copy(update={"account_id": "acc-b", "amount": Decimal("80")}))
        assert_invariant(ledger, store)
        ledger.update_transaction(b.model_copy(update={"account_id": "acc-a"}))
        assert_invariant(ledger, store)
        ledger.delete_transaction(a.id)
        assert_invariant(ledger, store)
        assert ledger.unreconciled_accounts() == []

    def test_total_matches_history(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(amount=Decimal("100")))
        ledger.add_transaction(make_draft(
            amount=Decimal("40"), type=CategoryType.INCOME, category_id="cat-salary", account_id="acc-b",
        ))
        total = sum(a.balance for a in store.list(EntityKind.ACCOUNTS))
        assert total == Decimal("1500") - Decimal("100") + Decimal("40")


class TestBalanceEdits:
    """Tests for direct balance edits and reconciliation."""

    def test_set_balance_without_transactions(self, ledger, store):
        account = ledger.set_balance("acc-a", Decimal("2500"))
        assert account.balance == Decimal("2500")
        assert account.opening_balance == Decimal("2500")
        assert balance(store, "acc-a") == Decimal("2500")

    def test_set_balance_locked_by_transactions(self, ledger, store, make_draft, audit_storage):
        ledger.add_transaction(make_draft())
        with pytest.raises(BalanceLockedError):
            ledger.set_balance("acc-a", Decimal("5000"))
        assert balance(store, "acc-a") == Decimal("900")
        assert audit_storage.get_recent_events()[0].event_type == AuditEventType.BALANCE_EDIT_BLOCKED

    def test_set_same_balance_is_allowed(self, ledger, make_draft):
        ledger.add_transaction(make_draft())
        assert ledger.set_balance("acc-a", Decimal("900")).balance == Decimal("900")

    def test_reference_queries(self, ledger, make_draft):
        ledger.add_transaction(make_draft())
        ledger.add_transaction(make_draft())
        assert ledger.has_transactions("acc-a")
        assert not ledger.has_transactions("acc-b")
        assert ledger.category_in_use("cat-food")
        assert ledger.account_reference_count("acc-a") == 2
        assert ledger.category_reference_count("cat-fun") == 0

    def test_reconcile_fixes_drift(self, ledger, store, make_draft):
        ledger.add_transaction(make_draft(amount=Decimal("100")))
        # Simulate a balance written behind the ledger's back
        drifted = store.require(EntityKind.ACCOUNTS, "acc-a").model_copy(update={"balance": Decimal("1")})
        store.put(EntityKind.ACCOUNTS, drifted)
        assert ledger.unreconciled_accounts() == ["acc-a"]

        fixed = ledger.reconcile("acc-a")

        assert fixed.balance == Decimal("900")
        assert ledger.unreconciled_accounts() == []

    def test_accounts_saved_without_opening_balance_reconcile(self):
        storage = InMemoryCollectionStorage({
            "accounts": [{"id": "a1", "name": "Main", "balance": "950"}],
            "transactions": [{
                "id": "t1", "date": "2024-01-05T00:00:00", "amount": "50",
                "type": "expense", "category_id": "cat-exp-1", "account_id": "a1",
            }],
        })
        store = EntityStore(storage)
        ledger = LedgerEngine(store)

        assert ledger.expected_balance("a1") == Decimal("950")
        assert ledger.unreconciled_accounts() == []
        assert ledger.reconcile("a1").balance == Decimal("950")

        ledger.add_transaction(TransactionDraft(
            date=datetime(2024, 2, 1), description="Kopi", amount=Decimal("25"),
            category_id="cat-exp-1", account_id="a1",
        ))
        assert balance(store, "a1") == Decimal("925")
        assert ledger.unreconciled_accounts() == []


class TestStorageFailure:
    """A failed write leaves memory untouched and is audited."""

    def test_failed_write_rolls_back(self, seed, audit_logger, audit_storage, make_draft):
        class ReadOnlyStorage(InMemoryCollectionStorage):
            def save(self, name, records):
                raise StorageError("read-only file system")

        store = EntityStore(ReadOnlyStorage(), defaults=seed)
        ledger = LedgerEngine(store, audit_logger=audit_logger)

        with pytest.raises(StorageError):
            ledger.add_transaction(make_draft())

        assert store.list(EntityKind.TRANSACTIONS) == []
        assert balance(store, "acc-a") == Decimal("1000")
        assert audit_storage.get_recent_events()[0].event_type == AuditEventType.SYSTEM_ERROR

    def test_failed_reconcile_is_not_audited(self, seed, audit_logger, audit_storage):
        class ArmedStorage(InMemoryCollectionStorage):
            armed = False

            def save(self, name, records):
                if self.armed:
                    raise StorageError("read-only file system")
                super().save(name, records)

        storage = ArmedStorage()
        store = EntityStore(storage, defaults=seed)
        ledger = LedgerEngine(store, audit_logger=audit_logger)
        drifted = store.require(EntityKind.ACCOUNTS, "acc-a").model_copy(update={"balance": Decimal("1")})
        store.put(EntityKind.ACCOUNTS, drifted)
        storage.armed = True

        with pytest.raises(StorageError):
            ledger.reconcile("acc-a")

        assert balance(store, "acc-a") == Decimal("1")
        assert AuditEventType.ACCOUNT_RECONCILED not in [
            e.event_type for e in audit_storage.get_recent_events()
        ]
