"""Record repository package."""

from bookkeeping.repository.records import (
    RecordRepository,
    canonical_order,
    current_time_ms,
    new_record_id,
)

__all__ = [
    "RecordRepository",
    "canonical_order",
    "current_time_ms",
    "new_record_id",
]
