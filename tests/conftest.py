"""
Shared fixtures for bookkeeping tests.

No test touches real local storage except through tmp_path.
"""

import itertools
from datetime import date
from decimal import Decimal

import pytest

from bookkeeping.audit import AuditLogger
from bookkeeping.models.record import RecordDraft, RecordType
from bookkeeping.repository import RecordRepository
from bookkeeping.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    RecordStore,
)


def make_draft(
    record_type: RecordType = RecordType.EXPENSE,
    amount: str = "30",
    category: str = "餐饮",
    day: date = date(2024, 1, 15),
    note=None,
) -> RecordDraft:
    return RecordDraft(
        type=record_type,
        amount=Decimal(amount),
        category=category,
        note=note,
        date=day,
    )


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend) -> RecordStore:
    return RecordStore(backend)


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def repository(store, audit_storage) -> RecordRepository:
    """Repository with a ticking clock (1000, 1001, ...) and sequential ids."""
    ticks = itertools.count(1000)
    ids = itertools.count(1)
    return RecordRepository(
        store,
        audit_logger=AuditLogger(audit_storage),
        clock=lambda: next(ticks),
        id_factory=lambda: f"rec{next(ids)}",
    )
