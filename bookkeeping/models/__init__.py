"""
Data Models Package

This package contains all Pydantic models used by the bookkeeping core.
All data flowing through the system must conform to these schemas.
"""

from bookkeeping.models.record import (
    DateGroup,
    GroupPage,
    ParsedRecords,
    Record,
    RecordDraft,
    RecordType,
    Summary,
    ValidationIssue,
    ValidationResult,
    format_date,
    format_month,
    parse_date_string,
    MAX_AMOUNT,
    quantize_amount,
)
from bookkeeping.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    "MAX_AMOUNT",
    # Record models
    "DateGroup",
    "GroupPage",
    "ParsedRecords",
    "Record",
    "RecordDraft",
    "RecordType",
    "Summary",
    "ValidationIssue",
    "ValidationResult",
    # Helpers
    "format_date",
    "format_month",
    "parse_date_string",
    "quantize_amount",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
