"""Services package."""

from finance_tracker.services.identity import (
    AuthenticationError,
    IdentityProvider,
    MockIdentityProvider,
)
from finance_tracker.services.storage import (
    AuditStorageInterface,
    CollectionStorageInterface,
    InMemoryAuditStorage,
    InMemoryCollectionStorage,
    JsonFileCollectionStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    # Identity
    "AuthenticationError",
    "IdentityProvider",
    "MockIdentityProvider",
    # Storage services
    "AuditStorageInterface",
    "CollectionStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryCollectionStorage",
    "JsonFileCollectionStorage",
    "StorageConnectionError",
    "StorageError",
]
