"""
Error types raised by the summary engine and the record flows.

Storage failures have their own hierarchy next to the storage interface.
"""

from typing import Optional


class ExpenseTrackerError(Exception):
    """Base exception for the expense tracker."""
    pass


class ValidationError(ExpenseTrackerError):
    """
    Input rejected before any computation.

    Raised for malformed dates, unknown categories and invalid record
    input. Never converted into an empty summary.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        issues: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.issues = issues or [message]


class OwnershipError(ExpenseTrackerError):
    """A record owned by someone else reached an owner-scoped computation."""
    pass
