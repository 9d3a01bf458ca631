"""
Aggregator

Computes the Summary of one record kind. The same class serves income
and expense; the kind selects the category vocabulary records are
checked against.

Two inputs are used on purpose:
- the FILTERED records drive total, record_count and category_buckets
- ALL of the owner's records drive the month totals and the
  monthly/daily series, so trend views do not jump when a filter changes

Everything here is a pure function of its inputs and the injected "now".
"""

import calendar
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Sequence

import structlog

from expense_tracker.errors import ValidationError
from expense_tracker.models.record import (
    Record,
    RecordKind,
    category_names,
    normalize_timestamp,
)
from expense_tracker.models.summary import (
    CategoryBucket,
    DailyBucket,
    MonthlyBucket,
    Summary,
)

logger = structlog.get_logger(__name__)

DEFAULT_MONTHLY_WINDOW = 6
DEFAULT_DAILY_WINDOW = 30


def month_bounds(now: datetime, months_back: int = 0) -> tuple[datetime, datetime]:
    """
    First and last instant of the calendar month `months_back` before `now`.

    January minus one month is December of the previous year.
    """
    index = now.year * 12 + (now.month - 1) - months_back
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1)
    end = datetime(year, month, last_day, 23, 59, 59, 999999)
    return start, end


def sum_amounts(records: Iterable[Record]) -> Decimal:
    return sum((r.amount for r in records), Decimal("0"))


class Aggregator:
    """
    Summary computation for one record kind.

    Args:
        kind: Which record kind this aggregator accepts
        monthly_window: How many non-empty months the monthly series keeps
        daily_window: How many non-empty days the daily series keeps
    """

    def __init__(
        self,
        kind: RecordKind,
        monthly_window: int = DEFAULT_MONTHLY_WINDOW,
        daily_window: int = DEFAULT_DAILY_WINDOW,
    ):
        self.kind = RecordKind(kind)
        self.monthly_window = monthly_window
        self.daily_window = daily_window
        self._categories = category_names(self.kind)

    def check(self, records: Sequence[Record]) -> None:
        """
        Reject records of another kind or outside this kind's vocabulary.

        Raises:
            ValidationError: On the first offending record
        """
        for record in records:
            if record.kind != self.kind:
                raise ValidationError(
                    f"{record.kind.value} record {record.id} passed to {self.kind.value} aggregation",
                    field="kind",
                )
            label = getattr(record.category, "value", record.category)
            if label not in self._categories:
                raise ValidationError(
                    f"Invalid {self.kind.value} category: {label}",
                    field="category",
                )

    def total(self, records: Sequence[Record]) -> Decimal:
        return sum_amounts(records)

    def category_buckets(self, records: Sequence[Record]) -> list[CategoryBucket]:
        """
        Group by category, largest total first.

        Equal totals keep the order in which their categories first
        appeared in `records`. The position is part of the sort key so
        the tie-break does not depend on sort stability.
        """
        totals: dict[str, Decimal] = {}
        counts: dict[str, int] = {}
        for record in records:
            label = getattr(record.category, "value", record.category)
            if label not in totals:
                totals[label] = Decimal("0")
                counts[label] = 0
            totals[label] += record.amount
            counts[label] += 1

        ordered = sorted(
            enumerate(totals.items()),
            key=lambda item: (-item[1][1], item[0]),
        )
        return [
            CategoryBucket(category=label, total=total, count=counts[label])
            for _, (label, total) in ordered
        ]

    def monthly_buckets(self, records: Sequence[Record]) -> list[MonthlyBucket]:
        """Most recent non-empty (year, month) totals, newest first."""
        totals: dict[tuple[int, int], Decimal] = {}
        for record in records:
            key = (record.date.year, record.date.month)
            totals[key] = totals.get(key, Decimal("0")) + record.amount

        keys = sorted(totals, reverse=True)[: self.monthly_window]
        return [
            MonthlyBucket(year=year, month=month, total=totals[(year, month)])
            for year, month in keys
        ]

    def daily_buckets(self, records: Sequence[Record]) -> list[DailyBucket]:
        """Most recent non-empty (year, month, day) totals, newest first."""
        totals: dict[tuple[int, int, int], Decimal] = {}
        for record in records:
            key = (record.date.year, record.date.month, record.date.day)
            totals[key] = totals.get(key, Decimal("0")) + record.amount

        keys = sorted(totals, reverse=True)[: self.daily_window]
        return [
            DailyBucket(year=year, month=month, day=day, total=totals[(year, month, day)])
            for year, month, day in keys
        ]

    def month_total(
        self,
        records: Sequence[Record],
        now: datetime,
        months_back: int = 0,
    ) -> Decimal:
        """Sum of records inside the calendar month `months_back` before `now`."""
        start, end = month_bounds(now, months_back)
        return sum_amounts(r for r in records if start <= r.date <= end)

    def summarize(
        self,
        filtered: Sequence[Record],
        all_records: Sequence[Record],
        now: datetime,
    ) -> Summary:
        """
        Build the Summary for this kind.

        Args:
            filtered: The owner's records matching the active filter
            all_records: All of the owner's records of this kind
            now: Reference time for the current/previous month windows

        Returns:
            Summary; all-zero with empty series when there are no records
        """
        filtered = list(filtered)
        all_records = list(all_records)
        self.check(filtered)
        self.check(all_records)
        now = normalize_timestamp(now)

        summary = Summary(
            kind=self.kind,
            total=self.total(filtered),
            record_count=len(filtered),
            current_month_total=self.month_total(all_records, now),
            previous_month_total=self.month_total(all_records, now, months_back=1),
            category_buckets=self.category_buckets(filtered),
            monthly_buckets=self.monthly_buckets(all_records),
            daily_buckets=self.daily_buckets(all_records),
        )

        logger.debug(
            "summary_aggregated",
            kind=self.kind.value,
            filtered_count=len(filtered),
            all_count=len(all_records),
            total=str(summary.total),
        )
        return summary
