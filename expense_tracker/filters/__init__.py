"""Filter building package."""

from expense_tracker.filters.builder import (
    ALL_CATEGORIES,
    RecordFilter,
    build_filter,
    parse_boundary,
)

__all__ = ["ALL_CATEGORIES", "RecordFilter", "build_filter", "parse_boundary"]
