"""Ledger aggregation package."""

from bookkeeping.queries.aggregation import (
    DEFAULT_GROUP_PAGE_SIZE,
    filter_by_month,
    group_by_date,
    next_visible_count,
    paginate_groups,
    summarize,
    toggle_collapse,
)

__all__ = [
    "DEFAULT_GROUP_PAGE_SIZE",
    "filter_by_month",
    "group_by_date",
    "next_visible_count",
    "paginate_groups",
    "summarize",
    "toggle_collapse",
]
