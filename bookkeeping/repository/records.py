"""
Record Repository

Typed CRUD surface over the RecordStore.

GUARANTEES:
- Every load re-reads the store; nothing is cached between calls
- Loaded records are always in canonical order: date descending, then
  creation time descending (most recent entry of a day first)
- Bad stored data never raises; it degrades to fewer (or zero) records
- Entries that have a string id but cannot be read, and unknown keys on
  readable entries, are written back unchanged by every mutation
- Removing an unknown id is a silent no-op

Each mutation is a full load-modify-write cycle. There is no isolation
beyond single-threaded use: concurrent writers would clobber each other.
"""

import time
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog

from bookkeeping.audit import AuditLogger
from bookkeeping.models.record import ParsedRecords, Record, RecordDraft
from bookkeeping.services.storage import RecordStore
from bookkeeping.validation import parse_records, serialize_records


logger = structlog.get_logger(__name__)


def current_time_ms() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def new_record_id() -> str:
    """Random 128-bit identifier rendered as 32 hex characters."""
    return uuid4().hex


def canonical_order(records: list[Record]) -> list[Record]:
    """Sort by date descending, breaking ties by creation time descending."""
    return sorted(records, key=lambda r: (r.date, r.created_at), reverse=True)


class RecordRepository:
    """
    Loads, adds, removes and clears records.

    The clock and id factory are injectable so tests can control ordering
    and identity.
    """

    def __init__(
        self,
        store: RecordStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], int] = current_time_ms,
        id_factory: Callable[[], str] = new_record_id,
        export_indent: int = 2,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock
        self._id_factory = id_factory
        self._export_indent = export_indent

    def load_parsed(self) -> ParsedRecords:
        """
        Load records together with what had to be discarded.

        Dropped entries and corrupt payloads are audited, never raised.
        """
        parsed = parse_records(self._store.read())

        if self._audit_logger:
            if parsed.corrupt:
                self._audit_logger.log_store_corrupt(self._store.key)
            elif parsed.dropped_count:
                self._audit_logger.log_records_dropped(
                    dropped_count=parsed.dropped_count,
                    kept_count=len(parsed.records),
                )

        return ParsedRecords(
            records=canonical_order(parsed.records),
            dropped_count=parsed.dropped_count,
            unreadable=parsed.unreadable,
            corrupt=parsed.corrupt,
        )

    def load(self) -> list[Record]:
        """All records in canonical order."""
        return self.load_parsed().records

    def _save(self, records: list[Record], unreadable: list[dict]) -> None:
        self._store.write(serialize_records(records, unreadable=unreadable))

    def _next_id(self, parsed: ParsedRecords) -> str:
        taken = {record.id for record in parsed.records}
        taken.update(entry["id"] for entry in parsed.unreadable)
        record_id = self._id_factory()
        while record_id in taken:
            record_id = self._id_factory()
        return record_id

    def add(
        self,
        draft: RecordDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Record:
        """
        Persist a new record built from a trusted draft.

        The draft is not re-validated here. The new record is placed at the
        head of the stored collection; the next load puts it in order.

        Raises:
            StorageError: If the collection cannot be written
        """
        parsed = self.load_parsed()
        records = parsed.records
        record = Record.from_draft(
            draft,
            record_id=self._next_id(parsed),
            created_at=self._clock(),
        )
        self._save([record, *records], parsed.unreadable)

        logger.debug("record_added", record_id=record.id, total=len(records) + 1)
        if self._audit_logger:
            self._audit_logger.log_record_added(
                record_id=record.id,
                record_type=record.type.value,
                amount=f"{record.amount:.2f}",
                category=record.category,
                correlation_id=correlation_id,
            )

        return record

    def remove(
        self,
        record_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Record]:
        """
        Remove a record by id and return the remaining records.

        Unknown ids leave the collection unchanged.

        Raises:
            StorageError: If the collection cannot be written
        """
        parsed = self.load_parsed()
        records = parsed.records
        remaining = [record for record in records if record.id != record_id]
        unreadable = [entry for entry in parsed.unreadable if entry["id"] != record_id]
        self._save(remaining, unreadable)

        found = len(remaining) != len(records) or len(unreadable) != len(parsed.unreadable)
        logger.debug("record_removed", record_id=record_id, found=found)
        if self._audit_logger:
            self._audit_logger.log_record_removed(
                record_id=record_id,
                found=found,
                correlation_id=correlation_id,
            )

        return remaining

    def clear_all(self, correlation_id: Optional[UUID] = None) -> None:
        """
        Delete the stored collection outright.

        Raises:
            StorageError: If the key cannot be removed
        """
        self._store.clear()
        logger.debug("records_cleared", key=self._store.key)
        if self._audit_logger:
            self._audit_logger.log_records_cleared(correlation_id=correlation_id)

    def export_json(self, correlation_id: Optional[UUID] = None) -> str:
        """The full collection as pretty-printed JSON, in the persisted shape."""
        parsed = self.load_parsed()
        if self._audit_logger:
            self._audit_logger.log_records_exported(
                record_count=len(parsed.records),
                correlation_id=correlation_id,
            )
        return serialize_records(
            parsed.records,
            indent=self._export_indent,
            unreadable=parsed.unreadable,
        )
