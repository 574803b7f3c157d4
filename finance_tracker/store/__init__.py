"""Entity store package."""

from finance_tracker.store.defaults import (
    ACCOUNT_TYPE_ICONS,
    DEFAULT_ACCOUNTS,
    DEFAULT_CATEGORIES,
)
from finance_tracker.store.entity_store import (
    EntityKind,
    EntityStore,
    default_collections,
)

__all__ = [
    "ACCOUNT_TYPE_ICONS",
    "DEFAULT_ACCOUNTS",
    "DEFAULT_CATEGORIES",
    "EntityKind",
    "EntityStore",
    "default_collections",
]
