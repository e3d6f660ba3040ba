"""
Audit Logger

DESIGN DECISION: Every ledger mutation and every degraded read is logged.
This provides:
1. Traceability of what happened to the user's records
2. Debugging capability when the ledger unexpectedly shows as empty
3. A history the user can review

The audit logger:
- Is synchronous, like the rest of the core
- Gracefully handles failures (a broken audit sink never breaks the ledger)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from bookkeeping.models.audit import AuditEvent, AuditEventBuilder
from bookkeeping.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("bookkeeping.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_record_added(
        self,
        record_id: str,
        record_type: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new record."""
        self.log(AuditEventBuilder.record_added(
            record_id=record_id,
            record_type=record_type,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    def log_record_removed(
        self,
        record_id: str,
        found: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a removal, including no-op removals of unknown ids."""
        self.log(AuditEventBuilder.record_removed(
            record_id=record_id,
            found=found,
            correlation_id=correlation_id,
        ))

    def log_records_cleared(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.records_cleared(correlation_id=correlation_id))

    def log_input_rejected(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.input_rejected(
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_store_corrupt(self, key: str) -> None:
        self.log(AuditEventBuilder.store_corrupt(key=key))

    def log_records_dropped(
        self,
        dropped_count: int,
        kept_count: int,
    ) -> None:
        """Log malformed stored entries excluded on load."""
        self.log(AuditEventBuilder.records_dropped(
            dropped_count=dropped_count,
            kept_count=kept_count,
        ))

    def log_records_exported(
        self,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.records_exported(
            record_count=record_count,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving a record).
    """
    return uuid4()
