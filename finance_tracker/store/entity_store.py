"""
Entity Store

Holds the four collections (accounts, categories, transactions, budgets)
in memory, keyed by id, and writes the whole touched collection through
the storage backend after every mutation.

There is no business logic here beyond existence checks. Balance rules
live in the ledger engine; delete guards live in the facade.

Records are frozen pydantic models, so everything handed out is a
snapshot: changing state means putting a new record.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal
from enum import Enum
from typing import Optional, TypeVar
from uuid import uuid4

import structlog
from pydantic import BaseModel, ValidationError

from finance_tracker.exceptions import NotFoundError
from finance_tracker.models.entities import Account, Budget, Category, Transaction
from finance_tracker.services.storage import CollectionStorageInterface, StorageError
from finance_tracker.store.defaults import DEFAULT_ACCOUNTS, DEFAULT_CATEGORIES


logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class EntityKind(str, Enum):
    """The collections the store holds. Values double as storage names."""
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"

    @property
    def model(self) -> type[BaseModel]:
        return _MODELS[self]

    @property
    def singular(self) -> str:
        return self.value[:-1]


_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.ACCOUNTS: Account,
    EntityKind.CATEGORIES: Category,
    EntityKind.TRANSACTIONS: Transaction,
    EntityKind.BUDGETS: Budget,
}


def default_collections() -> dict[EntityKind, list[BaseModel]]:
    """Seed data for collections that were never saved."""
    return {
        EntityKind.ACCOUNTS: list(DEFAULT_ACCOUNTS),
        EntityKind.CATEGORIES: list(DEFAULT_CATEGORIES),
        EntityKind.TRANSACTIONS: [],
        EntityKind.BUDGETS: [],
    }


class EntityStore:
    """
    In-memory entity collections backed by a CollectionStorageInterface.

    Insertion order is preserved per collection; the ledger relies on it
    for the date-descending transaction order.
    """

    def __init__(
        self,
        storage: CollectionStorageInterface,
        defaults: Optional[Mapping[EntityKind, list[BaseModel]]] = None,
    ):
        """
        Load every collection from storage.

        Args:
            storage: Persistence backend
            defaults: Records for collections the backend has never saved.
                      Falls back to the built-in seed data.

        Raises:
            StorageError: If stored data cannot be read or parsed
        """
        self._storage = storage
        self._defaults = dict(defaults) if defaults is not None else default_collections()
        raw = {kind: self._storage.load(kind.value) for kind in EntityKind}
        self._collections: dict[EntityKind, dict[str, BaseModel]] = {
            kind: self._load(kind, raw[kind]) for kind in EntityKind
        }
        self._derive_opening_balances(raw[EntityKind.ACCOUNTS])

    # -------------------------------------------------------------------------
    # Loading / saving
    # -------------------------------------------------------------------------

    def _load(self, kind: EntityKind, raw: Optional[list[dict]]) -> dict[str, BaseModel]:
        if raw is None:
            logger.debug("collection_defaulted", collection=kind.value)
            return self._index(kind, self._defaults.get(kind, []))

        try:
            records = [kind.model.model_validate(item) for item in raw]
        except ValidationError as e:
            raise StorageError(f"Collection '{kind.value}' holds an invalid record: {e}")
        return self._index(kind, records)

    def _derive_opening_balances(self, raw_accounts: Optional[list[dict]]) -> None:
        """
        Work out the opening balance of accounts saved without one.

        Their stored balance already includes their transactions, so the
        opening balance is that balance minus every transaction's impact.
        """
        legacy = {
            item.get("id")
            for item in raw_accounts or []
            if isinstance(item, dict) and item.get("opening_balance") is None
        }
        if not legacy:
            return

        impact: dict[str, Decimal] = defaultdict(Decimal)
        for transaction in self._collections[EntityKind.TRANSACTIONS].values():
            impact[transaction.account_id] += transaction.signed_amount

        accounts = self._collections[EntityKind.ACCOUNTS]
        derived = legacy & accounts.keys()
        for account_id in derived:
            account = accounts[account_id]
            accounts[account_id] = account.model_copy(update={
                "opening_balance": account.balance - impact[account_id],
            })
        logger.info("opening_balances_derived", accounts=len(derived))

    def _index(self, kind: EntityKind, records: Iterable[BaseModel]) -> dict[str, BaseModel]:
        """Key records by id, checking type and uniqueness."""
        indexed: dict[str, BaseModel] = {}
        for record in records:
            if not isinstance(record, kind.model):
                raise TypeError(
                    f"{kind.value} holds {kind.model.__name__} records, "
                    f"got {type(record).__name__}"
                )
            if not record.id:
                raise ValueError(f"{kind.singular} record has no id")
            if record.id in indexed:
                raise ValueError(f"Duplicate {kind.singular} id '{record.id}'")
            indexed[record.id] = record
        return indexed

    def _save(self, kind: EntityKind) -> None:
        records = [record.model_dump(mode="json") for record in self._collections[kind].values()]
        self._storage.save(kind.value, records)
        logger.debug("collection_written", collection=kind.value, records=len(records))

    def commit(self, changes: Mapping[EntityKind, Iterable[BaseModel]]) -> None:
        """
        Replace one or more whole collections in a single step.

        Every collection is checked before any is swapped in. If a save
        fails, the in-memory collections are restored and the StorageError
        propagates.
        """
        staged = {kind: self._index(kind, records) for kind, records in changes.items()}
        previous = {kind: self._collections[kind] for kind in staged}

        self._collections.update(staged)
        try:
            for kind in staged:
                self._save(kind)
        except StorageError:
            self._collections.update(previous)
            raise

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def generate_id(self) -> str:
        return uuid4().hex

    def list(self, kind: EntityKind) -> list:
        return list(self._collections[kind].values())

    def get(self, kind: EntityKind, entity_id: str) -> Optional[BaseModel]:
        return self._collections[kind].get(entity_id)

    def contains(self, kind: EntityKind, entity_id: str) -> bool:
        return entity_id in self._collections[kind]

    def require(self, kind: EntityKind, entity_id: str) -> BaseModel:
        """Like get(), but a missing id raises NotFoundError."""
        record = self._collections[kind].get(entity_id)
        if record is None:
            raise NotFoundError(kind.singular, entity_id)
        return record

    def put(self, kind: EntityKind, record: RecordT) -> RecordT:
        """
        Insert or replace a record.

        A record without an id is inserted under a fresh one. A record
        whose id exists replaces it in place; otherwise it is appended.

        Returns:
            The stored record (with its id)
        """
        if not getattr(record, "id", ""):
            record = record.model_copy(update={"id": self.generate_id()})

        updated = dict(self._collections[kind])
        updated[record.id] = record
        self.commit({kind: updated.values()})
        return record

    def remove(self, kind: EntityKind, entity_id: str) -> BaseModel:
        """
        Remove a record by id.

        Returns:
            The removed record

        Raises:
            NotFoundError: If no record has this id
        """
        record = self.require(kind, entity_id)
        self.commit({
            kind: [r for r in self._collections[kind].values() if r.id != entity_id]
        })
        return record

    def replace_all(self, kind: EntityKind, records: Iterable[BaseModel]) -> None:
        self.commit({kind: records})

    def reset(self) -> None:
        """Restore every collection to its defaults and persist them."""
        self.commit({kind: self._defaults.get(kind, []) for kind in EntityKind})
