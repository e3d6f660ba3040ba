"""
Abstract Storage Interfaces

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Swap the on-disk store for another local backend later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from how bytes reach the disk

The record interface is deliberately tiny: a synchronous key-value store.
The whole ledger lives as one serialized value under one key.
"""

from abc import ABC, abstractmethod
from typing import Optional

from bookkeeping.models.audit import AuditEvent


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for a synchronous local key-value store.

    Values are text. Every call completes before returning; there is no
    suspension point and no partial write is observable in-process.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key does not exist

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Delete a key. Deleting a missing key is not an error.

        Raises:
            StorageError: If the delete fails
        """
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
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass
