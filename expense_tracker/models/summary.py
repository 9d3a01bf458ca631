"""
Summary Models

These are the derived, ephemeral views computed from a snapshot of
records. None of them is ever persisted; they are recomputed on every
request.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_tracker.models.record import Record, RecordKind


class TransactionCountPolicy(str, Enum):
    """
    How CombinedSummary.transaction_count is derived.

    FILTERED counts filter-scoped records of both kinds.
    FEED_SCOPED counts filter-scoped expenses plus the most recent
    income slice shown in the feed.
    """
    FILTERED = "filtered"
    FEED_SCOPED = "feed_scoped"


class SortField(str, Enum):
    DATE = "date"
    AMOUNT = "amount"
    CATEGORY = "category"
    DESCRIPTION = "description"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    """Ordering requested for a list query."""

    field: SortField = SortField.DATE
    order: SortOrder = SortOrder.DESC


# =============================================================================
# QUERY PARAMETERS
# =============================================================================

class FilterParams(BaseModel):
    """
    Raw filter parameters as they arrive from the caller.

    Nothing is parsed here; the filter builder owns interpretation.
    Empty strings are kept as-is and treated as absent later.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    category: Optional[str] = None
    start_date: Optional[str] = Field(default=None, alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")


# =============================================================================
# BUCKETS
# =============================================================================

class CategoryBucket(BaseModel):
    """Total and count of records in one category."""

    category: str
    total: Decimal = Field(ge=0)
    count: int = Field(ge=0)


class MonthlyBucket(BaseModel):
    """Total of all records in one calendar month."""

    year: int
    month: int = Field(ge=1, le=12)
    total: Decimal = Field(ge=0)


class DailyBucket(BaseModel):
    """Total of all records on one calendar day."""

    year: int
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)
    total: Decimal = Field(ge=0)


# =============================================================================
# SUMMARIES
# =============================================================================

class Summary(BaseModel):
    """
    Aggregates of one record kind.

    total, record_count and category_buckets follow the active filter.
    The month totals and the monthly/daily series are computed over all
    of the owner's records so trend views stay stable while filtering.
    """

    kind: RecordKind
    total: Decimal = Decimal("0")
    record_count: int = 0
    current_month_total: Decimal = Decimal("0")
    previous_month_total: Decimal = Decimal("0")
    category_buckets: list[CategoryBucket] = Field(default_factory=list)
    monthly_buckets: list[MonthlyBucket] = Field(default_factory=list)
    daily_buckets: list[DailyBucket] = Field(default_factory=list)

    @property
    def month_over_month_change(self) -> Decimal:
        """Current month minus previous month."""
        return self.current_month_total - self.previous_month_total


class CombinedSummary(BaseModel):
    """Income and expense summaries reconciled into one dashboard view."""

    income: Summary
    expense: Summary
    balance: Decimal = Field(
        ...,
        description="income.total - expense.total, may be negative"
    )
    transaction_count: int = Field(ge=0)
    count_policy: TransactionCountPolicy
    generated_at: datetime = Field(
        ...,
        description="The 'now' this summary was computed against"
    )


class FeedEntry(BaseModel):
    """A record tagged with its kind, for the recent transactions feed."""

    id: UUID
    kind: RecordKind
    owner_id: str
    amount: Decimal
    category: str
    description: str
    date: datetime

    @field_validator("category", mode="before")
    @classmethod
    def category_label(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v

    @classmethod
    def from_record(cls, record: Record) -> "FeedEntry":
        """Build a feed entry without touching the record."""
        return cls(
            id=record.id,
            kind=record.kind,
            owner_id=record.owner_id,
            amount=record.amount,
            category=record.category,
            description=record.description,
            date=record.date,
        )
