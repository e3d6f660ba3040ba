"""
Storage Services Package

Provides abstract interfaces and concrete implementations for local storage.
The ledger runs on a file-per-key store by default and on an in-memory
store for tests, behind the same interface.
"""

from bookkeeping.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStoreInterface,
    StorageError,
)
from bookkeeping.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)
from bookkeeping.services.storage.file_store import FileKeyValueStore
from bookkeeping.services.storage.record_store import (
    DEFAULT_RECORDS_KEY,
    RecordStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStoreInterface",
    # Exceptions
    "StorageError",
    # Implementations
    "FileKeyValueStore",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "RecordStore",
    "DEFAULT_RECORDS_KEY",
]
