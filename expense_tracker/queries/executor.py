"""
Summary Query Execution

DESIGN DECISION: Fetching and computing are kept apart.
This executor performs the storage reads for a request and hands the
resulting snapshots to the pure summary/feed functions. Nothing it
computes is cached; every call reads a fresh snapshot.

Storage errors are NOT caught here. A failed read means no summary,
never a summary of zeros.
"""

import asyncio
from datetime import datetime
from typing import Any, Mapping, Optional, Union

import structlog

from expense_tracker.config import SummarySettings, get_settings
from expense_tracker.filters.builder import build_filter
from expense_tracker.models.record import Record, RecordKind, normalize_timestamp, utcnow
from expense_tracker.models.summary import (
    CombinedSummary,
    FeedEntry,
    FilterParams,
    SortSpec,
)
from expense_tracker.queries.export import export_rows
from expense_tracker.services.storage import RecordStorageInterface
from expense_tracker.summary.composer import SummaryComposer
from expense_tracker.summary.feed import compute_feed

logger = structlog.get_logger(__name__)

Params = Union[FilterParams, Mapping[str, Any], None]


class SummaryExecutor:
    """
    Executes dashboard queries against the record stores.

    GUARANTEES:
    - Every read is scoped to the requesting owner
    - Income and expense reads run concurrently; their completion order
      does not matter
    - "now" is injectable so results are reproducible
    """

    def __init__(
        self,
        income_storage: RecordStorageInterface,
        expense_storage: RecordStorageInterface,
        settings: Optional[SummarySettings] = None,
        composer: Optional[SummaryComposer] = None,
    ):
        if income_storage.kind != RecordKind.INCOME:
            raise ValueError("income_storage must hold income records")
        if expense_storage.kind != RecordKind.EXPENSE:
            raise ValueError("expense_storage must hold expense records")

        self._settings = settings or get_settings().summary
        self._stores = {
            RecordKind.INCOME: income_storage,
            RecordKind.EXPENSE: expense_storage,
        }
        self._composer = composer or SummaryComposer(
            monthly_window=self._settings.monthly_window,
            daily_window=self._settings.daily_window,
            recent_income_limit=self._settings.recent_income_limit,
            count_policy=self._settings.transaction_count_policy,
        )

    def storage_for(self, kind: RecordKind) -> RecordStorageInterface:
        return self._stores[RecordKind(kind)]

    async def compute_summary(
        self,
        owner_id: str,
        params: Params = None,
        now: Optional[datetime] = None,
    ) -> CombinedSummary:
        """
        Compute the combined dashboard summary for one owner.

        Raises:
            ValidationError: Malformed filter parameters
            StorageError: A store read failed (propagated untouched)
        """
        predicate = build_filter(owner_id, params)
        now = normalize_timestamp(now) if now else utcnow()
        income = self._stores[RecordKind.INCOME]
        expense = self._stores[RecordKind.EXPENSE]

        income_filtered, income_all, expense_filtered, expense_all = await asyncio.gather(
            income.find_by_owner_and_filter(owner_id, predicate),
            income.find_all_by_owner(owner_id),
            expense.find_by_owner_and_filter(owner_id, predicate),
            expense.find_all_by_owner(owner_id),
        )

        logger.debug(
            "summary_snapshot_fetched",
            owner_id=owner_id,
            filter=predicate.describe(),
            income_filtered=len(income_filtered),
            expense_filtered=len(expense_filtered),
        )

        return self._composer.compose(
            owner_id,
            income_filtered=income_filtered,
            income_all=income_all,
            expense_filtered=expense_filtered,
            expense_all=expense_all,
            now=now,
        )

    async def compute_feed(
        self,
        owner_id: str,
        params: Params = None,
        max_entries: Optional[int] = None,
    ) -> list[FeedEntry]:
        """
        Recent transactions: filter-scoped expenses merged with the
        owner's latest income records.
        """
        predicate = build_filter(owner_id, params)
        newest_first = SortSpec()

        expenses, incomes = await asyncio.gather(
            self._stores[RecordKind.EXPENSE].find_by_owner_and_filter(
                owner_id, predicate, newest_first, self._settings.list_limit
            ),
            self._stores[RecordKind.INCOME].find_by_owner_and_filter(
                owner_id,
                predicate.unconstrained(),
                newest_first,
                self._settings.recent_income_limit,
            ),
        )

        if max_entries is None:
            max_entries = self._settings.feed_size
        return compute_feed(owner_id, expenses, incomes, max_entries)

    async def list_records(
        self,
        owner_id: str,
        kind: RecordKind,
        params: Params = None,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[Record]:
        """Filtered record list, newest first unless `sort` says otherwise."""
        predicate = build_filter(owner_id, params)
        return await self.storage_for(kind).find_by_owner_and_filter(
            owner_id,
            predicate,
            sort or SortSpec(),
            limit if limit is not None else self._settings.list_limit,
        )

    async def export(
        self,
        owner_id: str,
        params: Params = None,
    ) -> dict[RecordKind, list[list[str]]]:
        """Export rows for both kinds under the same filter."""
        predicate = build_filter(owner_id, params)
        expenses, incomes = await asyncio.gather(
            self._stores[RecordKind.EXPENSE].find_by_owner_and_filter(owner_id, predicate),
            self._stores[RecordKind.INCOME].find_by_owner_and_filter(owner_id, predicate),
        )
        return {
            RecordKind.EXPENSE: export_rows(expenses),
            RecordKind.INCOME: export_rows(incomes),
        }
