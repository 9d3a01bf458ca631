"""Summary aggregation package."""

from expense_tracker.summary.aggregator import Aggregator, month_bounds
from expense_tracker.summary.composer import SummaryComposer
from expense_tracker.summary.feed import (
    DEFAULT_FEED_SIZE,
    compute_feed,
    merge_feed,
    recent_records,
)

__all__ = [
    "Aggregator",
    "DEFAULT_FEED_SIZE",
    "SummaryComposer",
    "compute_feed",
    "merge_feed",
    "month_bounds",
    "recent_records",
]
