"""Services package."""

from bookkeeping.services.storage import (
    AuditStorageInterface,
    FileKeyValueStore,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    RecordStore,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "FileKeyValueStore",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "KeyValueStoreInterface",
    "RecordStore",
    "StorageError",
]
