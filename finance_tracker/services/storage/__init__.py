"""
Storage Services Package

Provides the abstract collection interface and concrete implementations.
In-memory and JSON-file backends ship today; the ledger only ever sees
CollectionStorageInterface.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    CollectionStorageInterface,
    StorageConnectionError,
    StorageError,
)
from finance_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCollectionStorage,
)
from finance_tracker.services.storage.json_file import JsonFileCollectionStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CollectionStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryCollectionStorage",
    "JsonFileCollectionStorage",
]
