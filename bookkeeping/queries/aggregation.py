"""
Aggregation Engine

DESIGN DECISION: Every view of the ledger is derived by a pure function of
an already-loaded, canonically ordered record list. Nothing here performs
I/O or holds state, so the same input always yields the same view.

Functions:
- filter_by_month: records whose date falls in a YYYY-MM month
- summarize: income and expense totals
- group_by_date: records bucketed per calendar date, first-seen order
- paginate_groups: the visible prefix of date groups plus a has-more flag
- next_visible_count: how far one "load more" request advances
- toggle_collapse: flip one date's collapsed flag
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Mapping

from bookkeeping.models.record import (
    DateGroup,
    GroupPage,
    Record,
    RecordType,
    Summary,
    format_date,
)


DEFAULT_GROUP_PAGE_SIZE = 10


def filter_by_month(records: Iterable[Record], month_key: str) -> list[Record]:
    """
    Records dated inside the month `month_key` (YYYY-MM), order preserved.

    Matching is on the exact 7-character prefix of the YYYY-MM-DD date, so a
    malformed key simply matches nothing.
    """
    return [r for r in records if format_date(r.date)[:7] == month_key]


def summarize(records: Iterable[Record]) -> Summary:
    """Sum amounts by type, starting from zero for both totals."""
    income = Decimal("0")
    expense = Decimal("0")
    for record in records:
        if record.type == RecordType.EXPENSE:
            expense += record.amount
        else:
            income += record.amount
    return Summary(income=income, expense=expense)


def group_by_date(records: Iterable[Record]) -> list[DateGroup]:
    """
    Bucket records by calendar date.

    Groups appear in the order their date is first seen; records keep their
    relative input order within a group.
    """
    buckets: dict[date, list[Record]] = {}
    for record in records:
        buckets.setdefault(record.date, []).append(record)
    return [DateGroup(date=day, records=items) for day, items in buckets.items()]


def paginate_groups(groups: list[DateGroup], visible_count: int) -> GroupPage:
    """
    The first `visible_count` groups (clamped to [0, len(groups)]).

    has_more is True exactly when visible_count < len(groups).
    """
    total = len(groups)
    shown = max(0, min(visible_count, total))
    return GroupPage(
        groups=groups[:shown],
        has_more=visible_count < total,
        total_groups=total,
    )


def next_visible_count(
    visible_count: int,
    total_groups: int,
    page_size: int = DEFAULT_GROUP_PAGE_SIZE,
) -> int:
    """
    Advance pagination by one page, clamped to the total.

    A no-op once everything is visible.
    """
    if visible_count >= total_groups:
        return visible_count
    return min(visible_count + page_size, total_groups)


def toggle_collapse(collapsed: Mapping[date, bool], day: date) -> dict[date, bool]:
    """Return a copy of `collapsed` with the flag for `day` flipped."""
    flipped = dict(collapsed)
    flipped[day] = not collapsed.get(day, False)
    return flipped
