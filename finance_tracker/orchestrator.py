"""
Main Orchestrator for Finance Tracker

This module ties together all the components and is the one surface a
caller (UI, CLI, script) talks to:
1. Reads (accounts, categories, filtered transactions, budgets, reports)
2. Mutations (account/category/budget CRUD, transactions via the ledger)
3. Session (sign-in through the identity provider)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No account or category is deleted while a transaction references it
- No balance is edited directly once transactions depend on it
- No budget watches an income category
- Every mutation is audited

Balance arithmetic itself lives in the ledger engine; this layer only
decides whether an operation may happen.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.budgets import BudgetAggregator
from finance_tracker.config import get_settings
from finance_tracker.exceptions import EntityValidationError, ReferentialIntegrityError
from finance_tracker.ledger import LedgerEngine
from finance_tracker.models.audit import AuditEventBuilder, AuditEventType
from finance_tracker.models.entities import (
    Account,
    Budget,
    Category,
    Transaction,
    TransactionDraft,
    TransactionFilter,
)
from finance_tracker.models.results import BudgetProgress
from finance_tracker.reports import ReportingViews
from finance_tracker.services.identity import IdentityProvider, MockIdentityProvider
from finance_tracker.services.storage import (
    CollectionStorageInterface,
    InMemoryAuditStorage,
    InMemoryCollectionStorage,
    JsonFileCollectionStorage,
)
from finance_tracker.store import ACCOUNT_TYPE_ICONS, EntityKind, EntityStore
from finance_tracker.validation import LedgerValidator


logger = structlog.get_logger(__name__)


class FinanceTracker:
    """
    Facade over store, ledger, budgets and reports.

    Rules enforced here:
    - delete_account / delete_category raise ReferentialIntegrityError
      while transactions reference them
    - update_account may only change the balance of an account without
      transactions (BalanceLockedError otherwise)
    - add_budget / update_budget raise EntityValidationError for a
      non-positive amount or an income category
    """

    def __init__(
        self,
        store: EntityStore,
        ledger: Optional[LedgerEngine] = None,
        aggregator: Optional[BudgetAggregator] = None,
        reports: Optional[ReportingViews] = None,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        identity: Optional[IdentityProvider] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._validator = validator or LedgerValidator(store)
        self._ledger = ledger or LedgerEngine(store, self._validator, self._audit_logger)
        self._aggregator = aggregator or BudgetAggregator(store)
        self._reports = reports or ReportingViews(store)
        self._identity = identity or MockIdentityProvider()

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def ledger(self) -> LedgerEngine:
        return self._ledger

    @property
    def budgets(self) -> BudgetAggregator:
        return self._aggregator

    @property
    def reports(self) -> ReportingViews:
        return self._reports

    @property
    def identity(self) -> IdentityProvider:
        return self._identity

    # -------------------------------------------------------------------------
    # Read surface
    # -------------------------------------------------------------------------

    def list_accounts(self) -> list[Account]:
        return self._store.list(EntityKind.ACCOUNTS)

    def list_categories(self) -> list[Category]:
        return self._store.list(EntityKind.CATEGORIES)

    def list_transactions(self, filter: Optional[TransactionFilter] = None) -> list[Transaction]:
        """Transactions newest first, optionally narrowed by a filter."""
        return self._reports.filter_transactions(filter)

    def list_budgets(self) -> list[Budget]:
        return self._store.list(EntityKind.BUDGETS)

    def get_account_by_id(self, account_id: str) -> Optional[Account]:
        return self._store.get(EntityKind.ACCOUNTS, account_id)

    def get_category_by_id(self, category_id: str) -> Optional[Category]:
        return self._store.get(EntityKind.CATEGORIES, category_id)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def add_account(self, account: Account) -> Account:
        """
        Store a new account under a fresh id.

        The opening balance is the balance it is created with. Without an
        icon, the default icon for its type is used.
        """
        account = account.model_copy(update={
            "id": self._store.generate_id(),
            "opening_balance": account.balance,
            "icon": account.icon or ACCOUNT_TYPE_ICONS.get(account.type),
        })
        stored = self._store.put(EntityKind.ACCOUNTS, account)
        self._audit_logger.log_entity_changed(
            AuditEventType.ACCOUNT_ADDED, "account", stored.id, stored.name,
        )
        return stored

    def update_account(self, account: Account) -> Account:
        """
        Update an account's name, type, icon and (maybe) balance.

        The new record is written once. A balance change resets the opening
        balance with it; otherwise both balance fields keep their stored
        values whatever the caller passed.

        Raises:
            NotFoundError: If the account does not exist
            BalanceLockedError: If the balance changes while transactions exist
        """
        current = self._store.require(EntityKind.ACCOUNTS, account.id)
        balance_changed = account.balance != current.balance
        if balance_changed:
            self._ledger.ensure_balance_editable(account.id)
            balances = {"balance": account.balance, "opening_balance": account.balance}
        else:
            balances = {"balance": current.balance, "opening_balance": current.opening_balance}

        stored = self._store.put(EntityKind.ACCOUNTS, account.model_copy(update=balances))

        if balance_changed:
            self._audit_logger.log(AuditEventBuilder.balance_adjusted(
                stored.id, current.balance, stored.balance,
            ))
        self._audit_logger.log_entity_changed(
            AuditEventType.ACCOUNT_UPDATED, "account", stored.id, stored.name,
        )
        return stored

    def delete_account(self, account_id: str) -> Account:
        """
        Raises:
            NotFoundError: If the account does not exist
            ReferentialIntegrityError: If transactions reference it
        """
        self._store.require(EntityKind.ACCOUNTS, account_id)
        references = self._ledger.account_reference_count(account_id)
        if references:
            self._audit_logger.log_delete_blocked("account", account_id, references)
            raise ReferentialIntegrityError("account", account_id, references)

        removed = self._store.remove(EntityKind.ACCOUNTS, account_id)
        self._audit_logger.log_entity_changed(
            AuditEventType.ACCOUNT_DELETED, "account", account_id, removed.name,
        )
        return removed

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def add_category(self, category: Category) -> Category:
        stored = self._store.put(
            EntityKind.CATEGORIES,
            category.model_copy(update={"id": self._store.generate_id()}),
        )
        self._audit_logger.log_entity_changed(
            AuditEventType.CATEGORY_ADDED, "category", stored.id, stored.name,
        )
        return stored

    def update_category(self, category: Category) -> Category:
        """
        Raises:
            NotFoundError: If the category does not exist
        """
        self._store.require(EntityKind.CATEGORIES, category.id)
        stored = self._store.put(EntityKind.CATEGORIES, category)
        self._audit_logger.log_entity_changed(
            AuditEventType.CATEGORY_UPDATED, "category", stored.id, stored.name,
        )
        return stored

    def delete_category(self, category_id: str) -> Category:
        """
        Raises:
            NotFoundError: If the category does not exist
            ReferentialIntegrityError: If transactions reference it
        """
        self._store.require(EntityKind.CATEGORIES, category_id)
        references = self._ledger.category_reference_count(category_id)
        if references:
            self._audit_logger.log_delete_blocked("category", category_id, references)
            raise ReferentialIntegrityError("category", category_id, references)

        removed = self._store.remove(EntityKind.CATEGORIES, category_id)
        self._audit_logger.log_entity_changed(
            AuditEventType.CATEGORY_DELETED, "category", category_id, removed.name,
        )
        return removed

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        return self._ledger.add_transaction(draft)

    def update_transaction(self, transaction: Transaction) -> Transaction:
        return self._ledger.update_transaction(transaction)

    def delete_transaction(self, transaction_id: str) -> Transaction:
        return self._ledger.delete_transaction(transaction_id)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def _check_budget(self, budget: Budget) -> None:
        result = self._validator.validate_budget(budget)
        if result.has_errors:
            raise EntityValidationError.from_result("budget", result)

    def add_budget(self, budget: Budget) -> Budget:
        """
        Raises:
            EntityValidationError: Non-positive amount or income category
        """
        self._check_budget(budget)
        stored = self._store.put(
            EntityKind.BUDGETS,
            budget.model_copy(update={"id": self._store.generate_id()}),
        )
        self._audit_logger.log_entity_changed(
            AuditEventType.BUDGET_ADDED, "budget", stored.id,
        )
        return stored

    def update_budget(self, budget: Budget) -> Budget:
        """
        Raises:
            NotFoundError: If the budget does not exist
            EntityValidationError: Non-positive amount or income category
        """
        self._store.require(EntityKind.BUDGETS, budget.id)
        self._check_budget(budget)
        stored = self._store.put(EntityKind.BUDGETS, budget)
        self._audit_logger.log_entity_changed(
            AuditEventType.BUDGET_UPDATED, "budget", stored.id,
        )
        return stored

    def delete_budget(self, budget_id: str) -> Budget:
        removed = self._store.remove(EntityKind.BUDGETS, budget_id)
        self._audit_logger.log_entity_changed(
            AuditEventType.BUDGET_DELETED, "budget", budget_id,
        )
        return removed

    def budget_progress(
        self,
        budget_id: str,
        now: Optional[datetime] = None,
    ) -> BudgetProgress:
        """
        Raises:
            NotFoundError: If the budget does not exist
        """
        budget = self._store.require(EntityKind.BUDGETS, budget_id)
        return self._aggregator.progress(budget, now)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def overall_balance(self) -> Decimal:
        return self._reports.overall_balance()

    def reset_all_data(self) -> None:
        """Drop every record and restore the default accounts and categories."""
        self._store.reset()
        self._audit_logger.log(AuditEventBuilder.data_reset())


def create_app_components(
    storage: Optional[CollectionStorageInterface] = None,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        storage: Collection backend to use. If None, the backend named by
                 FINANCE_STORAGE_BACKEND is built ("memory" or "json").

    Returns:
        A FinanceTracker wired to the store, ledger, budgets and reports
    """
    settings = get_settings()

    if storage is None:
        if settings.storage.backend == "json":
            storage = JsonFileCollectionStorage(
                data_dir=settings.storage.data_dir,
                write_retries=settings.storage.write_retries,
            )
        else:
            storage = InMemoryCollectionStorage()

    logger.info(
        "app_components_created",
        backend=type(storage).__name__,
        environment=settings.app.app_environment,
    )

    store = EntityStore(storage)
    audit_logger = AuditLogger(InMemoryAuditStorage())
    validator = LedgerValidator(store)

    return FinanceTracker(
        store=store,
        ledger=LedgerEngine(store, validator, audit_logger),
        aggregator=BudgetAggregator(store, settings.ledger),
        reports=ReportingViews(store, settings.ledger),
        validator=validator,
        audit_logger=audit_logger,
    )
