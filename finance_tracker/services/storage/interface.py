"""
Abstract Storage Interface

The ledger core never talks to a concrete storage backend. It only needs,
per named collection, a way to load the whole collection and a way to
save it back. This allows us to:
1. Keep everything in memory for tests and throwaway sessions
2. Persist to JSON files on disk for a local install
3. Swap in another key-value store later without touching the ledger

The interface is intentionally simple - we're not building an ORM.
Records cross this boundary as plain JSON-compatible dicts.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finance_tracker.models.audit import AuditEvent


class CollectionStorageInterface(ABC):
    """
    Abstract interface for whole-collection persistence.

    Any storage implementation (memory, JSON files, browser-style
    key-value stores) must implement these methods.
    """

    @abstractmethod
    def load(self, name: str) -> Optional[list[dict]]:
        """
        Load a collection.

        Args:
            name: Collection name ("accounts", "categories", "transactions" or "budgets")

        Returns:
            The stored records, or None if the collection was never saved.
            None means "use the built-in defaults"; an empty list means
            "saved, and empty".

        Raises:
            StorageError: If the stored data cannot be read
        """
        pass

    @abstractmethod
    def save(self, name: str, records: list[dict]) -> None:
        """
        Replace a collection with the given records.

        Args:
            name: Collection name
            records: Every record of the collection, JSON-compatible

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def clear(self, name: str) -> None:
        """Forget a collection so the next load returns None."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageConnectionError(StorageError):
    """The storage backend cannot be reached or opened."""
    pass
