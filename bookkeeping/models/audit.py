"""
Audit Models for the Bookkeeping Ledger

Every mutation of the ledger and every degraded read is recorded as an
audit event. This provides:
1. Traceability of adds, removals and wipes
2. Visibility into stored data that had to be discarded on load
3. A history the user can inspect after a surprise empty ledger

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    RECORD_ADDED = "record_added"
    RECORD_REMOVED = "record_removed"
    RECORDS_CLEARED = "records_cleared"

    # Input boundary
    INPUT_REJECTED = "input_rejected"

    # Degraded reads
    STORE_CORRUPT = "store_corrupt"
    RECORDS_DROPPED = "records_dropped"

    # Outbound
    RECORDS_EXPORTED = "records_exported"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant ledger action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one user action)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added(record_id, "expense", "30.00", "餐饮")
        event = AuditEventBuilder.records_dropped(dropped_count=2, kept_count=10)
    """

    @staticmethod
    def record_added(
        record_id: str,
        record_type: str,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record added: {record_type} {amount} ({category})",
            details={
                "type": record_type,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_removed(
        record_id: str,
        found: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_REMOVED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=(
                "Record removed" if found else "Remove requested for unknown record"
            ),
            details={"found": found},
            is_user_action=True,
        )

    @staticmethod
    def records_cleared(
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_CLEARED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="All records cleared",
            is_user_action=True,
        )

    @staticmethod
    def input_rejected(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            correlation_id=correlation_id,
            description=f"Record input rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def store_corrupt(key: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_CORRUPT,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            entity_id=key,
            description="Stored records are not a JSON array; treating as empty",
        )

    @staticmethod
    def records_dropped(
        dropped_count: int,
        kept_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_DROPPED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            description=f"Dropped {dropped_count} malformed stored entries",
            details={
                "dropped_count": dropped_count,
                "kept_count": kept_count,
            },
        )

    @staticmethod
    def records_exported(
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORDS_EXPORTED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Exported {record_count} records as JSON",
            details={"record_count": record_count},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
