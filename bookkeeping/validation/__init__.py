"""Validation package."""

from bookkeeping.validation.validator import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    RecordInputValidator,
    category_options,
    default_category,
    parse_records,
    serialize_records,
)

__all__ = [
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "RecordInputValidator",
    "category_options",
    "default_category",
    "parse_records",
    "serialize_records",
]
