"""
Filter Builder

Turns the raw category/date parameters of a dashboard or list request
into a RecordFilter: an owner-scoped predicate over records.

IMPORTANT: Malformed input is rejected loudly. A bad date string never
degrades into "no date filter".
"""

from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.errors import ValidationError
from expense_tracker.models.record import Record, category_names, normalize_timestamp
from expense_tracker.models.summary import FilterParams

# Category value meaning "no category constraint"
ALL_CATEGORIES = "All"


class RecordFilter(BaseModel):
    """
    Owner-scoped predicate over records.

    Bounds are inclusive. A filter whose start is after its end is
    accepted and simply matches nothing.
    """
    model_config = ConfigDict(frozen=True)

    owner_id: str
    category: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def matches(self, record: Record) -> bool:
        if record.owner_id != self.owner_id:
            return False
        if self.category is not None and _category_label(record) != self.category:
            return False
        if self.start is not None and record.date < self.start:
            return False
        if self.end is not None and record.date > self.end:
            return False
        return True

    def __call__(self, record: Record) -> bool:
        return self.matches(record)

    @property
    def is_unconstrained(self) -> bool:
        """True when only the owner scope applies."""
        return self.category is None and self.start is None and self.end is None

    def unconstrained(self) -> "RecordFilter":
        """Same owner, no category or date constraint."""
        return RecordFilter(owner_id=self.owner_id)

    def describe(self) -> str:
        """Human-readable description for logs and audit events."""
        parts = [f"category: {self.category or ALL_CATEGORIES}"]
        if self.start and self.end:
            if self.start.date() == self.end.date():
                parts.append(f"on {self.start.strftime('%d %b %Y')}")
            else:
                parts.append(
                    f"from {self.start.strftime('%d %b %Y')} to {self.end.strftime('%d %b %Y')}"
                )
        elif self.start:
            parts.append(f"from {self.start.strftime('%d %b %Y')}")
        elif self.end:
            parts.append(f"until {self.end.strftime('%d %b %Y')}")
        return " | ".join(parts)


def _category_label(record: Record) -> str:
    category = record.category
    return getattr(category, "value", category)


def parse_boundary(value: Optional[str], field: str, end_of_day: bool = False) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime string into a filter boundary.

    A date without a time covers the whole day: the first instant for a
    start bound, the last instant for an end bound.

    Raises:
        ValidationError: If the string is not a valid ISO-8601 date
    """
    if value is None or value == "":
        return None

    try:
        day = date.fromisoformat(value)
    except ValueError:
        pass
    else:
        return datetime.combine(day, time.max if end_of_day else time.min)

    try:
        return normalize_timestamp(datetime.fromisoformat(value))
    except ValueError:
        raise ValidationError(
            f"Invalid {field}: {value!r} is not an ISO-8601 date",
            field=field,
        )


def coerce_params(params: Union[FilterParams, Mapping[str, Any], None]) -> FilterParams:
    """Accept a FilterParams, a raw query mapping, or nothing."""
    if params is None:
        return FilterParams()
    if isinstance(params, FilterParams):
        return params
    try:
        return FilterParams.model_validate(dict(params))
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid filter parameters",
            issues=[err["msg"] for err in e.errors()],
        )


def build_filter(
    owner_id: str,
    params: Union[FilterParams, Mapping[str, Any], None] = None,
) -> RecordFilter:
    """
    Build the owner-scoped predicate for a request.

    Args:
        owner_id: The requesting user
        params: Raw category/startDate/endDate parameters

    Returns:
        RecordFilter matching the owner's records within the constraints

    Raises:
        ValidationError: Empty owner, unknown category or malformed date
    """
    if not owner_id or not owner_id.strip():
        raise ValidationError("Owner is required", field="owner_id")

    params = coerce_params(params)

    category = params.category or None
    if category == ALL_CATEGORIES:
        category = None
    if category is not None and category not in category_names():
        raise ValidationError(f"Invalid category: {category}", field="category")

    start = parse_boundary(params.start_date, "start_date")
    end = parse_boundary(params.end_date, "end_date", end_of_day=True)

    return RecordFilter(
        owner_id=owner_id,
        category=category,
        start=start,
        end=end,
    )
