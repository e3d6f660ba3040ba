"""
Record Store

Owns the serialized record collection: exactly one text blob under one
well-known key of a key-value store.

DESIGN DECISION: read() never raises. A missing key, an unreadable backend
and (further up, in the repository) an unparseable payload all mean the
same thing to the ledger: there are no records. Writes and clears do
propagate StorageError, because losing a write silently is worse than a
visible failure.
"""

from typing import Optional

import structlog

from bookkeeping.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
)


DEFAULT_RECORDS_KEY = "bookkeeping_records_v1"

logger = structlog.get_logger(__name__)


class RecordStore:
    """Durable persistence of the record collection under a single key."""

    def __init__(
        self,
        backend: KeyValueStoreInterface,
        key: str = DEFAULT_RECORDS_KEY,
    ):
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def read(self) -> Optional[str]:
        """
        Return the raw serialized collection, or None when there is none.

        Backend failures, including raw OS errors from backends that do not
        wrap them, are logged and reported as absence.
        """
        try:
            raw = self._backend.get(self._key)
        except (StorageError, OSError) as e:
            logger.warning("record_store_read_failed", key=self._key, error=str(e))
            return None
        if raw is not None and not isinstance(raw, str):
            logger.warning(
                "record_store_unexpected_value",
                key=self._key,
                value_type=type(raw).__name__,
            )
            return None
        return raw

    def write(self, raw: str) -> None:
        """Overwrite the whole collection in one call."""
        self._backend.set(self._key, raw)

    def clear(self) -> None:
        """Remove the key; subsequent reads return None."""
        self._backend.remove(self._key)
