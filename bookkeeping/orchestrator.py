"""
Main Orchestrator for the Bookkeeping Ledger

This module ties together all the components and defines the flows the
presentation layer drives:
1. Record entry (input → validate → add)
2. Month view (month filter → summary → date groups → load more / collapse)
3. Overview (all-time totals → export → clear)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches the repository without passing input validation
- Views are recomputed from the records loaded by the last refresh()
- Every mutation is audited

The presentation layer holds on to these objects and renders what they
return; it never touches the store directly.
"""

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, ConfigDict, Field

from bookkeeping.audit import AuditLogger, create_correlation_id
from bookkeeping.config import LedgerSettings, Settings, get_settings
from bookkeeping.models.record import (
    GroupPage,
    Record,
    RecordType,
    Summary,
    ValidationResult,
    format_month,
)
from bookkeeping.queries import (
    filter_by_month,
    group_by_date,
    next_visible_count,
    paginate_groups,
    summarize,
    toggle_collapse,
)
from bookkeeping.repository import RecordRepository
from bookkeeping.services.storage import (
    FileKeyValueStore,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    RecordStore,
    StorageError,
)
from bookkeeping.validation import RecordInputValidator


MONTH_KEY_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

logger = structlog.get_logger(__name__)


class RecordRejectedError(ValueError):
    """Submitted record input failed validation."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.messages) or "Invalid record input")


# =============================================================================
# VIEW MODELS
# =============================================================================

class BillView(BaseModel):
    """Everything the month page renders."""
    model_config = ConfigDict(frozen=True)

    month_key: str
    summary: Summary
    page: GroupPage
    collapsed: dict[date, bool] = Field(default_factory=dict)

    @property
    def balance(self) -> Decimal:
        return self.summary.balance

    @property
    def is_empty(self) -> bool:
        return self.page.total_groups == 0

    def is_collapsed(self, day: date) -> bool:
        return self.collapsed.get(day, False)


class Overview(BaseModel):
    """All-time totals for the profile page."""
    model_config = ConfigDict(frozen=True)

    summary: Summary
    record_count: int = Field(ge=0)

    @property
    def balance(self) -> Decimal:
        return self.summary.balance


# =============================================================================
# FLOWS
# =============================================================================

class RecordEntryFlow:
    """
    Orchestrates recording a transaction.

    Flow:
    1. Validate raw input (amount > 0, category present, note trimmed)
    2. Reject with issues, or
    3. Add the normalized draft to the repository
    """

    def __init__(
        self,
        repository: RecordRepository,
        validator: Optional[RecordInputValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._validator = validator or RecordInputValidator()
        self._audit_logger = audit_logger

    def check(
        self,
        record_type: Union[RecordType, str],
        amount: object,
        category: object,
        note: object = None,
        record_date: Union[date, str, None] = None,
    ) -> ValidationResult:
        """Validate without saving."""
        return self._validator.validate(
            record_type=record_type,
            amount=amount,
            category=category,
            note=note,
            record_date=record_date,
        )

    def submit(
        self,
        record_type: Union[RecordType, str],
        amount: object,
        category: object,
        note: object = None,
        record_date: Union[date, str, None] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Record:
        """
        Validate and save one record.

        Returns:
            The created Record

        Raises:
            RecordRejectedError: If the input is invalid (nothing is saved)
            StorageError: If the record could not be written
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self.check(record_type, amount, category, note, record_date)
        if not result.is_valid:
            if self._audit_logger:
                self._audit_logger.log_input_rejected(
                    issues=[issue.model_dump() for issue in result.issues],
                    correlation_id=correlation_id,
                )
            raise RecordRejectedError(result)

        try:
            return self._repository.add(result.draft, correlation_id=correlation_id)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="record_write_failed",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise


class BillViewSession:
    """
    State behind the month page.

    Pagination state machine (per month filter):
        Initial (visible = page size)
          → Expanded (visible += page size, clamped) on load_more
          → back to Initial whenever the month changes
    Once every group is visible, load_more is a no-op.

    Records are loaded on construction, by refresh() and after remove().
    Changes made through other components show up after the next refresh().
    """

    def __init__(
        self,
        repository: RecordRepository,
        page_size: int = 10,
        month_key: Optional[str] = None,
    ):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._repository = repository
        self._page_size = page_size
        self._month_key = self._normalize_month(month_key or date.today())
        self._visible_count = page_size
        self._collapsed: dict[date, bool] = {}
        self._records: list[Record] = []
        self.refresh()

    @staticmethod
    def _normalize_month(month: Union[str, date]) -> str:
        if isinstance(month, date):
            return format_month(month)
        if not MONTH_KEY_PATTERN.fullmatch(month):
            raise ValueError(f"Month must be in YYYY-MM form, got {month!r}")
        return month

    @property
    def month_key(self) -> str:
        return self._month_key

    @property
    def visible_count(self) -> int:
        return self._visible_count

    def refresh(self) -> None:
        """Reload records from the repository (e.g., when the page is shown)."""
        self._records = self._repository.load()

    def set_month(self, month: Union[str, date]) -> None:
        """Switch the month filter; a different month starts a new session."""
        month_key = self._normalize_month(month)
        if month_key == self._month_key:
            return
        self._month_key = month_key
        self._visible_count = self._page_size
        self._collapsed = {}

    def _month_records(self) -> list[Record]:
        return filter_by_month(self._records, self._month_key)

    def load_more(self) -> bool:
        """
        Reveal one more page of date groups.

        Returns:
            True if more groups became visible
        """
        total = len(group_by_date(self._month_records()))
        advanced = next_visible_count(self._visible_count, total, self._page_size)
        if advanced == self._visible_count:
            return False
        self._visible_count = advanced
        return True

    def toggle_date(self, day: date) -> bool:
        """Flip a date group's collapsed flag; returns the new flag."""
        self._collapsed = toggle_collapse(self._collapsed, day)
        return self._collapsed[day]

    def remove(
        self,
        record_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a record and refresh the view."""
        self._repository.remove(record_id, correlation_id=correlation_id)
        self.refresh()

    def view(self) -> BillView:
        month_records = self._month_records()
        return BillView(
            month_key=self._month_key,
            summary=summarize(month_records),
            page=paginate_groups(group_by_date(month_records), self._visible_count),
            collapsed=dict(self._collapsed),
        )


class OverviewFlow:
    """
    Orchestrates the profile page: all-time totals, export, clear.
    """

    def __init__(self, repository: RecordRepository):
        self._repository = repository

    def overview(self) -> Overview:
        records = self._repository.load()
        return Overview(summary=summarize(records), record_count=len(records))

    def export_json(self, correlation_id: Optional[UUID] = None) -> str:
        """Pretty-printed JSON of every record, for clipboard or file export."""
        return self._repository.export_json(
            correlation_id=correlation_id or create_correlation_id(),
        )

    def clear(self, correlation_id: Optional[UUID] = None) -> None:
        """
        Wipe every record.

        CRITICAL: Call only after the user has explicitly confirmed.
        """
        self._repository.clear_all(
            correlation_id=correlation_id or create_correlation_id(),
        )


# =============================================================================
# FACTORY
# =============================================================================

def _create_backend(settings: Settings, use_storage: bool) -> KeyValueStoreInterface:
    storage_settings = settings.storage
    if not use_storage or storage_settings.backend == "memory":
        return InMemoryKeyValueStore()
    try:
        return FileKeyValueStore(storage_settings.data_dir)
    except StorageError as e:
        # Keep the app usable; records will not outlive the process.
        logger.warning(
            "file_storage_unavailable",
            data_dir=str(storage_settings.data_dir),
            error=str(e),
        )
        return InMemoryKeyValueStore()


def create_app_components(
    settings: Optional[Settings] = None,
    use_storage: bool = True,
) -> tuple[RecordEntryFlow, BillViewSession, OverviewFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings.
        use_storage: Whether to persist to disk. Set to False for testing
                    without touching the filesystem.

    Returns:
        (record_entry_flow, bill_view_session, overview_flow)
    """
    settings = settings or get_settings()
    logging.getLogger("bookkeeping").setLevel(settings.app.log_level)
    ledger_settings: LedgerSettings = settings.ledger

    audit_logger = AuditLogger(InMemoryAuditStorage())
    store = RecordStore(
        _create_backend(settings, use_storage),
        key=settings.storage.records_key,
    )
    repository = RecordRepository(
        store,
        audit_logger=audit_logger,
        export_indent=ledger_settings.export_indent,
    )

    entry_flow = RecordEntryFlow(
        repository,
        validator=RecordInputValidator(ledger_settings),
        audit_logger=audit_logger,
    )
    bill_session = BillViewSession(
        repository,
        page_size=ledger_settings.group_page_size,
    )
    overview_flow = OverviewFlow(repository)

    return entry_flow, bill_session, overview_flow
