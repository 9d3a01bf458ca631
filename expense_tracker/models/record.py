"""
Record Models for the Expense Tracker

Income and expense records share one shape and differ only in their
category vocabulary. Everything downstream (filters, aggregation, feed)
works on the common Record base and looks up the vocabulary by kind.

DESIGN DECISION: Timestamps are normalized to naive UTC on the way in.
Month and day buckets are then computed in a single time reference no
matter how the record was created.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_timestamp(value: Union[datetime, date]) -> datetime:
    """
    Bring a date or datetime into the engine's time reference.

    Aware datetimes are converted to UTC and made naive.
    A bare date means midnight of that day.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    return datetime(value.year, value.month, value.day)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordKind(str, Enum):
    """The two record kinds the tracker knows about."""
    INCOME = "income"
    EXPENSE = "expense"


class ExpenseCategory(str, Enum):
    """Expense categories. Values are the labels users see."""
    FOOD = "Food"
    TRAVEL = "Travel"
    RENT = "Rent"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    EDUCATION = "Education"
    TRANSPORT = "Transport"
    OTHER = "Other"


class IncomeCategory(str, Enum):
    """Income categories."""
    SALARY = "Salary"
    BUSINESS = "Business"
    INVESTMENTS = "Investments"
    GIFTS = "Gifts"
    OTHER = "Other"


# =============================================================================
# RECORDS
# =============================================================================

class Record(BaseModel):
    """
    A single dated, categorized, amount-bearing entry.

    Never instantiated directly - use IncomeRecord or ExpenseRecord so
    the category is checked against the right vocabulary.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: ClassVar[RecordKind]

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID, assigned at creation"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="User the record belongs to"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount, never negative"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    date: datetime = Field(
        default_factory=utcnow,
        description="When the income or expense happened (UTC)"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("date", "created_at", "updated_at", mode="before")
    @classmethod
    def to_utc(cls, v):
        """Accept dates and aware datetimes, store naive UTC."""
        if isinstance(v, str):
            try:
                v = datetime.fromisoformat(v.strip())
            except ValueError:
                return v
        if isinstance(v, (datetime, date)):
            return normalize_timestamp(v)
        return v

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def drop_parsed_timezone(cls, v: datetime) -> datetime:
        # ISO strings with an offset are parsed as aware datetimes
        return normalize_timestamp(v)


class IncomeRecord(Record):
    """An income entry."""

    kind: ClassVar[RecordKind] = RecordKind.INCOME

    category: IncomeCategory = Field(
        ...,
        description="Income category"
    )


class ExpenseRecord(Record):
    """An expense entry."""

    kind: ClassVar[RecordKind] = RecordKind.EXPENSE

    category: ExpenseCategory = Field(
        ...,
        description="Expense category"
    )


CATEGORY_VOCABULARY: dict[RecordKind, type[Enum]] = {
    RecordKind.INCOME: IncomeCategory,
    RecordKind.EXPENSE: ExpenseCategory,
}

RECORD_MODELS: dict[RecordKind, type[Record]] = {
    RecordKind.INCOME: IncomeRecord,
    RecordKind.EXPENSE: ExpenseRecord,
}


def category_names(kind: Optional[RecordKind] = None) -> set[str]:
    """
    Category labels valid for a kind, or for either kind if none given.
    """
    kinds = [kind] if kind else list(CATEGORY_VOCABULARY)
    return {member.value for k in kinds for member in CATEGORY_VOCABULARY[k]}


def record_model_for(kind: RecordKind) -> type[Record]:
    """Model class for a record kind."""
    return RECORD_MODELS[RecordKind(kind)]
