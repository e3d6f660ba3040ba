"""
In-Memory Storage

Process-local implementations of the storage interfaces. Used for tests
and for running the ledger without touching the disk.
"""

from collections import deque
from typing import Optional

from bookkeeping.models.audit import AuditEvent
from bookkeeping.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
)


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class InMemoryAuditStorage(AuditStorageInterface):
    """
    Bounded audit log kept in memory.

    Oldest events fall off once `max_events` is reached.
    """

    def __init__(self, max_events: int = 1000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        newest_first = list(reversed(self._events))
        return newest_first[:limit]
