"""
Summary Composer

Reconciles the income and expense snapshots of one owner into a
CombinedSummary. The composer is a pure reducer: it is handed both
snapshots after they were fetched (in whatever order the fetches
finished) and holds no state between calls.
"""

from datetime import datetime
from typing import Sequence

import structlog

from expense_tracker.models.record import Record, RecordKind, normalize_timestamp
from expense_tracker.models.summary import CombinedSummary, TransactionCountPolicy
from expense_tracker.summary.aggregator import (
    DEFAULT_DAILY_WINDOW,
    DEFAULT_MONTHLY_WINDOW,
    Aggregator,
)
from expense_tracker.summary.feed import check_owner, recent_records

logger = structlog.get_logger(__name__)

DEFAULT_RECENT_INCOME_LIMIT = 10


class SummaryComposer:
    """
    Runs one Aggregator per kind and combines the results.

    Args:
        monthly_window: Months kept in each monthly series
        daily_window: Days kept in each daily series
        recent_income_limit: Size of the income slice used by the
            FEED_SCOPED transaction count
        count_policy: How transaction_count is derived
    """

    def __init__(
        self,
        monthly_window: int = DEFAULT_MONTHLY_WINDOW,
        daily_window: int = DEFAULT_DAILY_WINDOW,
        recent_income_limit: int = DEFAULT_RECENT_INCOME_LIMIT,
        count_policy: TransactionCountPolicy = TransactionCountPolicy.FILTERED,
    ):
        self.recent_income_limit = recent_income_limit
        self.count_policy = TransactionCountPolicy(count_policy)
        self._income = Aggregator(RecordKind.INCOME, monthly_window, daily_window)
        self._expense = Aggregator(RecordKind.EXPENSE, monthly_window, daily_window)

    def transaction_count(
        self,
        income_filtered: Sequence[Record],
        income_all: Sequence[Record],
        expense_filtered: Sequence[Record],
    ) -> int:
        if self.count_policy == TransactionCountPolicy.FEED_SCOPED:
            recent = recent_records(income_all, self.recent_income_limit)
            return len(expense_filtered) + len(recent)
        return len(expense_filtered) + len(income_filtered)

    def compose(
        self,
        owner_id: str,
        income_filtered: Sequence[Record],
        income_all: Sequence[Record],
        expense_filtered: Sequence[Record],
        expense_all: Sequence[Record],
        now: datetime,
    ) -> CombinedSummary:
        """
        Build the CombinedSummary for one owner.

        Either both kinds are summarized or an exception propagates;
        there is no partial result.

        Raises:
            OwnershipError: A record belongs to a different owner
            ValidationError: A record is of the wrong kind or category
        """
        for records in (income_filtered, income_all, expense_filtered, expense_all):
            check_owner(owner_id, records)

        now = normalize_timestamp(now)
        income = self._income.summarize(income_filtered, income_all, now)
        expense = self._expense.summarize(expense_filtered, expense_all, now)

        combined = CombinedSummary(
            income=income,
            expense=expense,
            balance=income.total - expense.total,
            transaction_count=self.transaction_count(
                income_filtered, income_all, expense_filtered
            ),
            count_policy=self.count_policy,
            generated_at=now,
        )

        logger.debug(
            "summary_composed",
            owner_id=owner_id,
            balance=str(combined.balance),
            transaction_count=combined.transaction_count,
        )
        return combined
