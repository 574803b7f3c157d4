"""
In-Memory Storage Implementation

Used by tests and by sessions that do not need to survive the process.
Records are deep-copied on the way in and out, so nothing a caller holds
aliases what is stored.
"""

import copy
from typing import Optional

from finance_tracker.models.audit import AuditEvent
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    CollectionStorageInterface,
)


class InMemoryCollectionStorage(CollectionStorageInterface):
    """Dict-backed collection storage."""

    def __init__(self, initial: Optional[dict[str, list[dict]]] = None):
        self._collections: dict[str, list[dict]] = copy.deepcopy(initial or {})
        self.save_count = 0

    def load(self, name: str) -> Optional[list[dict]]:
        if name not in self._collections:
            return None
        return copy.deepcopy(self._collections[name])

    def save(self, name: str, records: list[dict]) -> None:
        self._collections[name] = copy.deepcopy(records)
        self.save_count += 1

    def clear(self, name: str) -> None:
        self._collections.pop(name, None)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
