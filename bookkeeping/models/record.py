"""
Core Data Models for the Bookkeeping Ledger

These models define the schemas for every value flowing through the core:
1. What the caller hands in when recording a transaction (RecordDraft)
2. What is persisted and loaded back (Record)
3. What the aggregation engine derives (Summary, DateGroup, GroupPage)

DESIGN DECISION: The persisted layout is a plain JSON array of objects with
camelCase `createdAt` and a numeric `amount`. Python code works with
snake_case attributes and Decimal amounts; aliases and serializers bridge
the two so the stored shape never changes.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)


TWO_PLACES = Decimal("0.01")
# Largest amount whose two-decimal value survives the numeric JSON layout.
MAX_AMOUNT = Decimal("9999999999999.99")


def quantize_amount(amount: Decimal) -> Decimal:
    """Round an amount to two fractional digits (half up)."""
    if not amount.is_finite():
        raise ValueError("amount must be a finite number")
    try:
        return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError("amount is too large") from e


Amount = Annotated[Decimal, AfterValidator(quantize_amount)]

# Fields below are named `date`; annotate through an alias.
CalendarDate = date


# =============================================================================
# ENUMS
# =============================================================================

class RecordType(str, Enum):
    """Direction of a transaction."""
    EXPENSE = "expense"
    INCOME = "income"


# =============================================================================
# RECORDS
# =============================================================================

class RecordDraft(BaseModel):
    """
    A transaction as submitted by the caller, before it has an identity.

    The repository trusts drafts: amount and category checks belong to the
    input boundary (see bookkeeping.validation).
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    type: RecordType
    amount: Amount = Field(
        ...,
        description="Amount, rounded to two decimals"
    )
    category: str = Field(
        ...,
        description="Category label"
    )
    note: Optional[str] = Field(
        default=None,
        description="Optional free-text note"
    )
    date: CalendarDate = Field(
        ...,
        description="Calendar date of the transaction (no time component)"
    )


class Record(BaseModel):
    """
    A persisted transaction.

    Records are immutable once created. An edit is a remove followed by an
    add, which yields a new id and a new creation timestamp.

    Keys this build does not know are kept as extra fields and written back
    unchanged, so data from newer builds survives a save.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = Field(
        ...,
        description="Opaque unique identifier"
    )
    type: RecordType
    amount: Amount
    category: str
    note: Optional[str] = None
    date: CalendarDate
    created_at: int = Field(
        ...,
        alias="createdAt",
        description="Creation time in milliseconds since epoch (ordering only)"
    )

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, amount: Decimal) -> Union[int, float]:
        # Stored layout keeps amount numeric, not a string. A float holds
        # 15 significant digits exactly, which MAX_AMOUNT stays within.
        if amount == amount.to_integral_value():
            return int(amount)
        return float(amount)

    @classmethod
    def from_draft(cls, draft: RecordDraft, record_id: str, created_at: int) -> "Record":
        """Attach an identity and creation time to a draft."""
        return cls(
            id=record_id,
            type=draft.type,
            amount=draft.amount,
            category=draft.category,
            note=draft.note,
            date=draft.date,
            created_at=created_at,
        )

    @property
    def month_key(self) -> str:
        return format_month(self.date)

    @property
    def signed_amount_text(self) -> str:
        """Amount as shown in lists: '-30.00' for expenses, '+100.00' for income."""
        sign = "-" if self.type == RecordType.EXPENSE else "+"
        return f"{sign}{self.amount:.2f}"

    def to_storage_dict(self) -> dict:
        """Convert to the persisted JSON shape, extra fields included."""
        data = self.model_dump(mode="json", by_alias=True)
        if self.note is None:
            data.pop("note", None)
        return data


class ParsedRecords(BaseModel):
    """Outcome of narrowing raw stored data to records."""

    records: list[Record] = Field(default_factory=list)
    dropped_count: int = Field(
        default=0,
        ge=0,
        description="Entries excluded because they did not match the record shape"
    )
    unreadable: list[dict[str, Any]] = Field(
        default_factory=list,
        description=(
            "Entries with a string id that could not be read as records; "
            "kept verbatim so the next save writes them back"
        )
    )
    corrupt: bool = Field(
        default=False,
        description="The payload was not a JSON array at all"
    )


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class Summary(BaseModel):
    """Income and expense totals. Balance is derived, never stored."""
    model_config = ConfigDict(frozen=True)

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def balance(self) -> Decimal:
        return self.income - self.expense


class DateGroup(BaseModel):
    """All records sharing one calendar date, in canonical order."""
    model_config = ConfigDict(frozen=True)

    date: CalendarDate
    records: list[Record] = Field(default_factory=list)


class GroupPage(BaseModel):
    """The visible slice of date groups for incremental loading."""
    model_config = ConfigDict(frozen=True)

    groups: list[DateGroup] = Field(default_factory=list)
    has_more: bool = False
    total_groups: int = Field(default=0, ge=0)


# =============================================================================
# DATE HELPERS
# =============================================================================

def format_date(value: Union[date, datetime]) -> str:
    """Render a date as YYYY-MM-DD."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_month(value: Union[date, datetime]) -> str:
    """Render the month key (YYYY-MM) of a date."""
    return f"{value.year:04d}-{value.month:02d}"


def parse_date_string(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Falls back to today when the string is missing a part or does not name
    a real day, so pickers always have something to show.
    """
    parts = value.split("-") if value else []
    if len(parts) != 3:
        return date.today()
    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError:
        return date.today()


# =============================================================================
# INPUT VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_numeric', 'not_positive')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ValidationResult(BaseModel):
    """
    Result of checking a record submission at the input boundary.

    When valid, `draft` holds the normalized draft ready for the repository.
    """

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    draft: Optional[RecordDraft] = None

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.issues]
