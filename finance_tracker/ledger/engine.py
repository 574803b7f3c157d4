"""
Ledger Engine

Keeps every account balance consistent with the transaction history:

    balance == opening_balance + sum(balance impact of its transactions)

where the balance impact of a transaction is +amount for income and
-amount for expense. The engine is the only component that writes
`Account.balance`.

Each public operation builds the complete new transaction list and the
complete new account list first, then hands both to the store in one
commit. A validation or lookup failure therefore leaves the store exactly
as it was.

The transaction list is kept sorted by date, newest first. Equal dates
keep their existing relative order; a newly added transaction goes ahead
of older ones with the same date.
"""

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.exceptions import BalanceLockedError, EntityValidationError
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.entities import Account, Transaction, TransactionDraft
from finance_tracker.services.storage import StorageError
from finance_tracker.store import EntityKind, EntityStore
from finance_tracker.validation import LedgerValidator


ZERO = Decimal("0")


class LedgerEngine:
    """
    Transaction mutations with balance maintenance.

    GUARANTEES:
    - After add/update/delete, every touched account satisfies the
      balance invariant
    - Missing ids raise NotFoundError; nothing is silently skipped
    - A transaction referencing an unknown account is recorded, but moves
      no balance
    """

    def __init__(
        self,
        store: EntityStore,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or LedgerValidator(store)
        self._audit_logger = audit_logger

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def balance_impact(transaction: TransactionDraft) -> Decimal:
        """Signed contribution of a transaction to its account's balance."""
        return transaction.signed_amount

    @staticmethod
    def _sorted(transactions: Iterable[Transaction]) -> list[Transaction]:
        # sorted() is stable with reverse=True, so equal dates keep their order
        return sorted(transactions, key=lambda t: t.date, reverse=True)

    def _validate(self, draft: TransactionDraft, transaction_id: Optional[str] = None) -> None:
        result = self._validator.validate_transaction(draft)
        if result.has_errors:
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.transaction_rejected(
                    transaction_id,
                    [issue.model_dump() for issue in result.issues],
                ))
            raise EntityValidationError.from_result("transaction", result)

    def _apply_deltas(
        self,
        deltas: dict[str, Decimal],
    ) -> tuple[list[Account], dict[str, Decimal]]:
        """
        Return the full account list with balance deltas applied.

        Deltas for accounts that do not exist are dropped, as are zero
        deltas. The second value maps account id to the delta actually
        applied.
        """
        applied: dict[str, Decimal] = {}
        accounts = []
        for account in self._store.list(EntityKind.ACCOUNTS):
            delta = deltas.get(account.id, ZERO)
            if delta != ZERO:
                account = account.model_copy(update={"balance": account.balance + delta})
                applied[account.id] = delta
            accounts.append(account)
        return accounts, applied

    def _commit(self, transactions: list[Transaction], accounts: list[Account]) -> None:
        try:
            self._store.commit({
                EntityKind.TRANSACTIONS: transactions,
                EntityKind.ACCOUNTS: accounts,
            })
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_error("storage_write_failed", str(e))
            raise

    # -------------------------------------------------------------------------
    # Transaction mutations
    # -------------------------------------------------------------------------

    def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """
        Record a new transaction and apply its impact to its account.

        Returns:
            The stored transaction, with its new id

        Raises:
            EntityValidationError: If the draft fails validation
        """
        self._validate(draft)

        transaction = Transaction.from_draft(draft, self._store.generate_id())
        transactions = self._sorted([transaction, *self._store.list(EntityKind.TRANSACTIONS)])
        accounts, _ = self._apply_deltas({transaction.account_id: transaction.signed_amount})

        self._commit(transactions, accounts)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.transaction_added(
                transaction.id, transaction.account_id, transaction.signed_amount,
            ))
        return transaction

    def update_transaction(self, updated: Transaction) -> Transaction:
        """
        Replace a transaction, moving balances accordingly.

        The old record's impact is reversed on its account and the new
        record's impact applied to its (possibly different) account. When
        the account is unchanged both adjustments net on the same balance.

        Raises:
            NotFoundError: If no transaction has this id
            EntityValidationError: If the new record fails validation
        """
        old = self._store.require(EntityKind.TRANSACTIONS, updated.id)
        self._validate(updated, updated.id)

        deltas: dict[str, Decimal] = defaultdict(Decimal)
        deltas[old.account_id] -= old.signed_amount
        deltas[updated.account_id] += updated.signed_amount

        transactions = self._sorted(
            updated if t.id == updated.id else t
            for t in self._store.list(EntityKind.TRANSACTIONS)
        )
        accounts, applied = self._apply_deltas(deltas)

        self._commit(transactions, accounts)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.transaction_updated(updated.id, applied))
        return updated

    def delete_transaction(self, transaction_id: str) -> Transaction:
        """
        Remove a transaction and reverse its impact.

        Returns:
            The removed transaction

        Raises:
            NotFoundError: If no transaction has this id
        """
        transaction = self._store.require(EntityKind.TRANSACTIONS, transaction_id)

        transactions = [
            t for t in self._store.list(EntityKind.TRANSACTIONS) if t.id != transaction_id
        ]
        accounts, _ = self._apply_deltas({transaction.account_id: -transaction.signed_amount})

        self._commit(transactions, accounts)

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.transaction_deleted(
                transaction.id, transaction.account_id, transaction.signed_amount,
            ))
        return transaction

    # -------------------------------------------------------------------------
    # Reference queries
    # -------------------------------------------------------------------------

    def account_reference_count(self, account_id: str) -> int:
        return sum(
            1 for t in self._store.list(EntityKind.TRANSACTIONS) if t.account_id == account_id
        )

    def category_reference_count(self, category_id: str) -> int:
        return sum(
            1 for t in self._store.list(EntityKind.TRANSACTIONS) if t.category_id == category_id
        )

    def has_transactions(self, account_id: str) -> bool:
        """True if any transaction references the account (its balance is then locked)."""
        return any(
            t.account_id == account_id for t in self._store.list(EntityKind.TRANSACTIONS)
        )

    def category_in_use(self, category_id: str) -> bool:
        return any(
            t.category_id == category_id for t in self._store.list(EntityKind.TRANSACTIONS)
        )

    # -------------------------------------------------------------------------
    # Direct balance edits and reconciliation
    # -------------------------------------------------------------------------

    def ensure_balance_editable(self, account_id: str) -> None:
        """
        Raises:
            BalanceLockedError: If any transaction references the account
        """
        if self.has_transactions(account_id):
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.balance_edit_blocked(account_id))
            raise BalanceLockedError(account_id)

    def set_balance(self, account_id: str, new_balance: Decimal) -> Account:
        """
        Set an account's balance directly.

        Only allowed while no transaction references the account; the
        opening balance moves with it so the invariant keeps holding.

        Raises:
            NotFoundError: If the account does not exist
            BalanceLockedError: If the account has transactions
        """
        account = self._store.require(EntityKind.ACCOUNTS, account_id)
        if account.balance == new_balance:
            return account

        self.ensure_balance_editable(account_id)
        adjusted = self._store.put(EntityKind.ACCOUNTS, account.model_copy(update={
            "balance": new_balance,
            "opening_balance": new_balance,
        }))

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.balance_adjusted(
                account_id, account.balance, new_balance,
            ))
        return adjusted

    def expected_balance(self, account_id: str) -> Decimal:
        """Opening balance plus every transaction's impact, computed from scratch."""
        account = self._store.require(EntityKind.ACCOUNTS, account_id)
        return account.opening_balance + sum(
            (t.signed_amount for t in self._store.list(EntityKind.TRANSACTIONS)
             if t.account_id == account_id),
            ZERO,
        )

    def unreconciled_accounts(self) -> list[str]:
        """Ids of accounts whose stored balance disagrees with their history."""
        return [
            account.id
            for account in self._store.list(EntityKind.ACCOUNTS)
            if account.balance != self.expected_balance(account.id)
        ]

    def reconcile(self, account_id: str) -> Account:
        """
        Rewrite an account's balance from its history.

        Returns:
            The (possibly corrected) account
        """
        account = self._store.require(EntityKind.ACCOUNTS, account_id)
        previous = account.balance
        expected = self.expected_balance(account_id)

        if previous != expected:
            account = self._store.put(
                EntityKind.ACCOUNTS,
                account.model_copy(update={"balance": expected}),
            )

        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.account_reconciled(
                account_id, previous, expected,
            ))
        return account
