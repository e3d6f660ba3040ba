"""Tests for the record repository."""

import json
import re
from datetime import date
from decimal import Decimal

import pytest

from bookkeeping.audit import AuditLogger
from bookkeeping.models.audit import AuditEventType
from bookkeeping.models.record import RecordType
from bookkeeping.repository import RecordRepository, canonical_order, new_record_id
from bookkeeping.services.storage import (
    DEFAULT_RECORDS_KEY,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    RecordStore,
    StorageError,
)
from tests.conftest import make_draft


def assert_canonical(records):
    for a, b in zip(records, records[1:]):
        assert a.date > b.date or (a.date == b.date and a.created_at >= b.created_at)


class TestRecordRepositoryAdd:
    """Tests for adding records."""

    def test_round_trip(self, repository):
        """A loaded record equals the draft in every field but id/createdAt."""
        draft = make_draft(note="lunch")
        created = repository.add(draft)

        loaded = repository.load()
        assert loaded == [created]
        record = loaded[0]
        assert record.type == draft.type
        assert record.amount == draft.amount
        assert record.category == draft.category
        assert record.note == draft.note
        assert record.date == draft.date
        assert isinstance(record.id, str) and record.id
        assert isinstance(record.created_at, int)

    def test_assigns_clock_and_id(self, repository):
        first = repository.add(make_draft())
        second = repository.add(make_draft())
        assert (first.id, first.created_at) == ("rec1", 1000)
        assert (second.id, second.created_at) == ("rec2", 1001)

    def test_does_not_revalidate(self, repository):
        """The repository trusts its caller, even with a zero amount."""
        created = repository.add(make_draft(amount="0"))
        assert repository.load()[0].amount == Decimal("0")
        assert created.amount == 0

    def test_new_record_stored_at_head(self, repository, backend):
        repository.add(make_draft(day=date(2024, 3, 1)))
        repository.add(make_draft(day=date(2024, 1, 1)))
        stored = json.loads(backend.get(DEFAULT_RECORDS_KEY))
        assert [entry["date"] for entry in stored] == ["2024-01-01", "2024-03-01"]
        assert [r.date for r in repository.load()] == [date(2024, 3, 1), date(2024, 1, 1)]

    def test_regenerates_colliding_ids(self, store):
        ids = iter(["dup", "dup", "fresh"])
        repository = RecordRepository(store, id_factory=lambda: next(ids))
        repository.add(make_draft())
        second = repository.add(make_draft())
        assert second.id == "fresh"
        assert {r.id for r in repository.load()} == {"dup", "fresh"}

    def test_default_ids_are_compact_random(self, store):
        record = RecordRepository(store).add(make_draft())
        assert re.fullmatch(r"[0-9a-f]{32}", record.id)
        assert new_record_id() != new_record_id()

    def test_write_failure_propagates(self):
        class ReadOnlyStore(InMemoryKeyValueStore):
            def set(self, key, value):
                raise StorageError("read-only")

        repository = RecordRepository(RecordStore(ReadOnlyStore()))
        with pytest.raises(StorageError):
            repository.add(make_draft())


class TestRecordRepositoryLoad:
    """Tests for loading and ordering."""

    def test_empty_store(self, repository):
        assert repository.load() == []

    def test_sort_by_date_then_created_at(self, repository):
        repository.add(make_draft(day=date(2024, 1, 10)))
        repository.add(make_draft(day=date(2024, 1, 20)))
        repository.add(make_draft(day=date(2024, 1, 10)))
        repository.add(make_draft(day=date(2023, 12, 31)))
        repository.add(make_draft(day=date(2024, 1, 20)))

        loaded = repository.load()
        assert [(r.date.day, r.created_at) for r in loaded] == [
            (20, 1004), (20, 1001), (10, 1002), (10, 1000), (31, 1003),
        ]
        assert_canonical(loaded)

    def test_canonical_order_is_stable_for_full_ties(self, repository):
        repository_records = [
            repository.add(make_draft(category=str(n))) for n in range(3)
        ]
        tied = [r.model_copy(update={"created_at": 5}) for r in repository_records]
        assert canonical_order(tied) == tied

    @pytest.mark.parametrize("raw", ["not json", '{"records": []}', "null"])
    def test_corrupt_store_loads_empty(self, repository, backend, audit_storage, raw):
        backend.set(DEFAULT_RECORDS_KEY, raw)
        assert repository.load() == []
        events = audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.STORE_CORRUPT

    def test_excludes_non_string_ids(self, repository, backend, audit_storage):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([
            {"id": 1, "type": "expense", "amount": 1, "category": "x",
             "date": "2024-01-01", "createdAt": 1},
            {"id": "ok", "type": "income", "amount": 2, "category": "y",
             "date": "2024-01-02", "createdAt": 2},
        ]))
        parsed = repository.load_parsed()
        assert [r.id for r in parsed.records] == ["ok"]
        assert parsed.dropped_count == 1
        events = audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.RECORDS_DROPPED
        assert events[0].details == {"dropped_count": 1, "kept_count": 1}

    def test_every_load_rereads_store(self, repository, backend):
        repository.add(make_draft())
        backend.set(DEFAULT_RECORDS_KEY, "[]")
        assert repository.load() == []


class TestRecordRepositoryRemoveAndClear:
    """Tests for removal, clearing and export."""

    def test_remove_returns_remaining(self, repository):
        keep = repository.add(make_draft(day=date(2024, 1, 1)))
        gone = repository.add(make_draft(day=date(2024, 1, 2)))
        assert repository.remove(gone.id) == [keep]
        assert repository.load() == [keep]

    def test_remove_is_idempotent(self, repository):
        repository.add(make_draft())
        target = repository.add(make_draft())
        first = repository.remove(target.id)
        second = repository.remove(target.id)
        assert first == second
        assert repository.load() == second

    def test_remove_unknown_id_is_silent(self, repository, audit_storage):
        existing = repository.add(make_draft())
        assert repository.remove("no-such-id") == [existing]
        event = audit_storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.RECORD_REMOVED
        assert event.details["found"] is False

    def test_clear_all(self, repository, backend):
        repository.add(make_draft())
        repository.add(make_draft(record_type=RecordType.INCOME))
        repository.clear_all()
        assert repository.load() == []
        assert DEFAULT_RECORDS_KEY not in backend

    def test_clear_all_on_empty_store(self, repository):
        repository.clear_all()
        assert repository.load() == []

    def test_add_after_clear_recreates_collection(self, repository):
        repository.add(make_draft())
        repository.clear_all()
        created = repository.add(make_draft())
        assert repository.load() == [created]

    def test_persisted_layout(self, repository, backend):
        repository.add(make_draft(amount="12.5", note="coffee"))
        stored = json.loads(backend.get(DEFAULT_RECORDS_KEY))
        assert stored == [{
            "id": "rec1",
            "type": "expense",
            "amount": 12.5,
            "category": "餐饮",
            "note": "coffee",
            "date": "2024-01-15",
            "createdAt": 1000,
        }]

    def test_export_json_matches_persisted_shape(self, repository, audit_storage):
        repository.add(make_draft(day=date(2024, 1, 1)))
        repository.add(make_draft(day=date(2024, 2, 1), record_type=RecordType.INCOME))
        exported = repository.export_json()

        assert exported.startswith("[\n  {")
        payload = json.loads(exported)
        assert [entry["id"] for entry in payload] == ["rec2", "rec1"]
        assert set(payload[0]) == {"id", "type", "amount", "category", "date", "createdAt"}
        assert audit_storage.get_recent_events()[0].event_type == AuditEventType.RECORDS_EXPORTED

    def test_works_without_audit_logger(self, store):
        repository = RecordRepository(store)
        created = repository.add(make_draft())
        repository.remove(created.id)
        repository.clear_all()
        assert repository.load() == []

    def test_audit_trail_for_mutations(self, store):
        audit_storage = InMemoryAuditStorage()
        repository = RecordRepository(store, audit_logger=AuditLogger(audit_storage))
        created = repository.add(make_draft())
        repository.remove(created.id)
        repository.clear_all()
        types = [e.event_type for e in reversed(audit_storage.get_recent_events())]
        assert types == [
            AuditEventType.RECORD_ADDED,
            AuditEventType.RECORD_REMOVED,
            AuditEventType.RECORDS_CLEARED,
        ]


class TestRecordRepositoryPreservesStoredData:
    """Tests that saving never loses stored data the ledger cannot show."""

    def stored(self, **overrides):
        entry = {
            "id": "old",
            "type": "expense",
            "amount": 5,
            "category": "x",
            "date": "2024-01-01",
            "createdAt": 1,
        }
        entry.update(overrides)
        return entry

    def stored_entries(self, backend):
        return {entry["id"]: entry for entry in json.loads(backend.get(DEFAULT_RECORDS_KEY))}

    def test_unknown_keys_survive_add(self, repository, backend):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([self.stored(tags=["trip"])]))
        repository.add(make_draft())
        assert self.stored_entries(backend)["old"] == self.stored(tags=["trip"])

    def test_null_created_at_loads_and_sorts_last(self, repository, backend):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([
            self.stored(id="late", createdAt=None),
            self.stored(id="early", createdAt=7),
        ]))
        assert [r.id for r in repository.load()] == ["early", "late"]
        repository.add(make_draft())
        assert self.stored_entries(backend)["late"]["createdAt"] == 0

    def test_unpadded_date_survives_add(self, repository, backend):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([self.stored(date="2024-1-5")]))
        repository.add(make_draft())
        assert set(self.stored_entries(backend)) == {"old", "rec1"}
        assert self.stored_entries(backend)["old"]["date"] == "2024-01-05"

    def test_unreadable_entry_written_back_verbatim(self, repository, backend):
        odd = self.stored(id="odd", type="transfer")
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([odd, self.stored()]))

        assert [r.id for r in repository.load()] == ["old"]
        created = repository.add(make_draft())
        repository.remove("old")

        entries = self.stored_entries(backend)
        assert set(entries) == {"odd", created.id}
        assert entries["odd"] == odd
        assert "odd" in repository.export_json()

    def test_remove_targets_unreadable_entry(self, repository, backend, audit_storage):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([self.stored(id="odd", amount="lots")]))
        assert repository.remove("odd") == []
        assert json.loads(backend.get(DEFAULT_RECORDS_KEY)) == []
        assert audit_storage.get_recent_events()[0].details["found"] is True

    def test_new_id_avoids_unreadable_ids(self, store, backend):
        backend.set(DEFAULT_RECORDS_KEY, json.dumps([self.stored(id="dup", type="transfer")]))
        ids = iter(["dup", "fresh"])
        repository = RecordRepository(store, id_factory=lambda: next(ids))
        assert repository.add(make_draft()).id == "fresh"
