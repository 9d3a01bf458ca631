"""
Transaction Feed Merger

Merges recent expense and income records into one newest-first list
for the "recent transactions" panel.
"""

from typing import Sequence

from expense_tracker.errors import OwnershipError, ValidationError
from expense_tracker.models.record import Record
from expense_tracker.models.summary import FeedEntry

DEFAULT_FEED_SIZE = 10


def recent_records(records: Sequence[Record], limit: int) -> list[Record]:
    """The `limit` most recent records, newest first (stable on equal dates)."""
    return sorted(records, key=lambda r: r.date, reverse=True)[:limit]


def check_owner(owner_id: str, records: Sequence[Record]) -> None:
    """
    Raises:
        OwnershipError: If any record belongs to another owner
    """
    for record in records:
        if record.owner_id != owner_id:
            raise OwnershipError(
                f"{record.kind.value} record {record.id} does not belong to owner {owner_id}"
            )


def merge_feed(
    expenses: Sequence[Record],
    incomes: Sequence[Record],
    max_entries: int = DEFAULT_FEED_SIZE,
) -> list[FeedEntry]:
    """
    Tag, concatenate (expenses first), sort newest first, truncate.

    Entries with equal dates keep their concatenation order: Python's
    sort is stable, and reverse=True preserves that stability.
    """
    if max_entries < 0:
        raise ValidationError("Feed size cannot be negative", field="max_entries")

    entries = [FeedEntry.from_record(r) for r in expenses]
    entries.extend(FeedEntry.from_record(r) for r in incomes)
    entries.sort(key=lambda e: e.date, reverse=True)
    return entries[:max_entries]


def compute_feed(
    owner_id: str,
    expenses: Sequence[Record],
    incomes: Sequence[Record],
    max_entries: int = DEFAULT_FEED_SIZE,
) -> list[FeedEntry]:
    """
    Owner-checked feed merge.

    Args:
        owner_id: Owner the feed is built for
        expenses: Filter-scoped expense records
        incomes: Most recent income records
        max_entries: Cap on the number of entries

    Returns:
        min(max_entries, len(expenses) + len(incomes)) entries, newest first
    """
    check_owner(owner_id, expenses)
    check_owner(owner_id, incomes)
    return merge_feed(expenses, incomes, max_entries)
