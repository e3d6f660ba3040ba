"""
Validation for the Bookkeeping Ledger

Two unrelated checkpoints live here:

STORED DATA NARROWING (parse_records):
- The persisted blob is untrusted: it may be missing, not JSON, not an
  array, or hold entries written by an older or newer build
- Missing or non-numeric createdAt becomes 0; unpadded dates are padded
- Entries without a string id are dropped; entries with one that still do
  not fit are hidden from views but written back verbatim on the next save
- Unknown keys ride along on the record and are saved unchanged
- Nothing here raises; a bad blob means an empty ledger

INPUT BOUNDARY (RecordInputValidator):
- Amount must be a number greater than zero, rounded to two decimals,
  and no larger than MAX_AMOUNT
- Category must be a non-empty label
- Notes are trimmed, blank notes are dropped
- The date defaults to today

IMPORTANT: The repository does not call the input validator. Callers
validate first and hand the repository a trusted draft.
"""

import json
import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError

from bookkeeping.config import LedgerSettings
from bookkeeping.models.record import (
    MAX_AMOUNT,
    ParsedRecords,
    Record,
    RecordDraft,
    RecordType,
    ValidationIssue,
    ValidationResult,
    quantize_amount,
)


EXPENSE_CATEGORIES = ("餐饮", "交通", "购物", "娱乐", "居住", "医疗", "其他")
INCOME_CATEGORIES = ("工资", "奖金", "理财", "红包", "其他")


# =============================================================================
# STORED DATA
# =============================================================================

def _coerce_created_at(value: Any) -> int:
    """Creation time for ordering; anything unusable sorts last in its day."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    return value


def _coerce_date(value: Any) -> Any:
    """Normalize unpadded Y-M-D strings such as '2024-1-5'."""
    if not isinstance(value, str):
        return value
    parts = value.strip().split("-")
    if len(parts) != 3:
        return value
    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day).isoformat()
    except ValueError:
        return value


def _narrow_entry(entry: dict[str, Any]) -> Optional[Record]:
    """Return a Record for a stored entry with a string id, None if unreadable."""
    payload = dict(entry)
    payload["createdAt"] = _coerce_created_at(payload.get("createdAt"))
    if "date" in payload:
        payload["date"] = _coerce_date(payload["date"])
    try:
        return Record.model_validate(payload)
    except ValidationError:
        return None


def parse_records(raw: Optional[str]) -> ParsedRecords:
    """
    Narrow raw stored text to a list of records.

    Entries without a string id are dropped. Entries with one that still do
    not fit the record shape after coercion are dropped from the records
    but returned verbatim in `unreadable`, so a later save keeps them.

    Returns:
        ParsedRecords with the surviving records in stored order, how many
        entries were dropped, and whether the payload as a whole was corrupt.
    """
    if raw is None:
        return ParsedRecords()

    try:
        payload = json.loads(raw)
    except (ValueError, TypeError):
        return ParsedRecords(corrupt=True)

    if not isinstance(payload, list):
        return ParsedRecords(corrupt=True)

    records = []
    unreadable = []
    for entry in payload:
        if not isinstance(entry, dict) or not isinstance(entry.get("id"), str):
            continue
        record = _narrow_entry(entry)
        if record is None:
            unreadable.append(entry)
        else:
            records.append(record)

    return ParsedRecords(
        records=records,
        dropped_count=len(payload) - len(records),
        unreadable=unreadable,
    )


def serialize_records(
    records: list[Record],
    indent: Optional[int] = None,
    unreadable: Sequence[dict[str, Any]] = (),
) -> str:
    """Render records, then any unreadable entries, as the persisted JSON array."""
    return json.dumps(
        [record.to_storage_dict() for record in records] + list(unreadable),
        ensure_ascii=False,
        indent=indent,
    )


# =============================================================================
# INPUT BOUNDARY
# =============================================================================

def category_options(record_type: RecordType) -> tuple[str, ...]:
    """Suggested category labels for a record type."""
    if record_type == RecordType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def default_category(record_type: RecordType) -> str:
    return category_options(record_type)[0]


class RecordInputValidator:
    """
    Checks a record submission before it reaches the repository.

    Validation never raises and never silently fixes values beyond the
    normalization the ledger defines (rounding, trimming). Problems are
    reported as issues for the caller to show.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or LedgerSettings()

    def _check_type(
        self,
        raw: object,
        issues: list[ValidationIssue],
    ) -> Optional[RecordType]:
        try:
            return RecordType(raw)
        except ValueError:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message="Type must be 'expense' or 'income'",
            ))
            return None

    def _check_amount(
        self,
        raw: object,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        if raw is None or isinstance(raw, bool) or (isinstance(raw, str) and not raw.strip()):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Please enter an amount",
            ))
            return None

        try:
            amount = quantize_amount(Decimal(str(raw).strip()))
        except (InvalidOperation, ValueError):
            # Not a number, NaN/Infinity, or too large to carry two decimals.
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_numeric",
                message="Amount must be a number",
            ))
            return None

        if amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message="Amount must be greater than zero",
            ))
            return None

        if amount > MAX_AMOUNT:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_large",
                message=f"Amount must be at most {MAX_AMOUNT}",
            ))
            return None

        return amount

    def _check_category(
        self,
        raw: object,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        category = raw.strip() if isinstance(raw, str) else ""
        if not category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Please choose a category",
            ))
            return None
        if len(category) > self._settings.max_category_length:
            issues.append(ValidationIssue(
                field="category",
                issue_type="too_long",
                message=(
                    f"Category must be at most "
                    f"{self._settings.max_category_length} characters"
                ),
            ))
            return None
        return category

    def _check_note(
        self,
        raw: object,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        if raw is None:
            return None
        if not isinstance(raw, str):
            issues.append(ValidationIssue(
                field="note",
                issue_type="invalid_value",
                message="Note must be text",
            ))
            return None
        note = raw.strip()
        if len(note) > self._settings.max_note_length:
            issues.append(ValidationIssue(
                field="note",
                issue_type="too_long",
                message=f"Note must be at most {self._settings.max_note_length} characters",
            ))
            return None
        return note or None

    def _check_date(
        self,
        raw: object,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        if raw is None:
            return date.today()
        if isinstance(raw, datetime):
            return raw.date()
        if isinstance(raw, date):
            return raw
        if isinstance(raw, str):
            try:
                return date.fromisoformat(raw.strip())
            except ValueError:
                pass
        issues.append(ValidationIssue(
            field="date",
            issue_type="invalid_format",
            message="Date must be a calendar date in YYYY-MM-DD form",
        ))
        return None

    def validate(
        self,
        record_type: Union[RecordType, str],
        amount: object,
        category: object,
        note: object = None,
        record_date: Union[date, str, None] = None,
    ) -> ValidationResult:
        """
        Validate one submission.

        Returns:
            ValidationResult; when valid, `draft` carries the normalized draft
        """
        issues: list[ValidationIssue] = []

        checked_type = self._check_type(record_type, issues)
        checked_amount = self._check_amount(amount, issues)
        checked_category = self._check_category(category, issues)
        checked_note = self._check_note(note, issues)
        checked_date = self._check_date(record_date, issues)

        if issues:
            return ValidationResult(is_valid=False, issues=issues)

        draft = RecordDraft(
            type=checked_type,
            amount=checked_amount,
            category=checked_category,
            note=checked_note,
            date=checked_date,
        )
        return ValidationResult(is_valid=True, draft=draft)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per problem, or a short confirmation."""
        if result.is_valid:
            return "Ready to save."
        return "\n".join(f"• {message}" for message in result.messages)
