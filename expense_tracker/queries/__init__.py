"""Query execution package."""

from expense_tracker.queries.executor import SummaryExecutor
from expense_tracker.queries.export import EXPORT_HEADER, export_rows

__all__ = ["EXPORT_HEADER", "SummaryExecutor", "export_rows"]
