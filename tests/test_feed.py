"""Tests for the recent transactions feed."""

import pytest
from datetime import datetime, timedelta

from expense_tracker.errors import OwnershipError, ValidationError
from expense_tracker.models.record import RecordKind
from expense_tracker.summary import compute_feed, merge_feed, recent_records


class TestMergeFeed:
    """Tests for merge_feed."""

    def test_newest_first_across_kinds(self, make_expense, make_income):
        expense = make_expense(date=datetime(2024, 2, 1))
        income = make_income(date=datetime(2024, 2, 2))

        feed = merge_feed([expense], [income], 10)

        assert [e.kind for e in feed] == [RecordKind.INCOME, RecordKind.EXPENSE]
        assert [e.id for e in feed] == [income.id, expense.id]

    def test_truncates(self, make_expense, make_income):
        base = datetime(2024, 2, 1)
        expenses = [make_expense(date=base + timedelta(hours=i)) for i in range(8)]
        incomes = [make_income(date=base + timedelta(minutes=30 + 60 * i)) for i in range(8)]

        feed = merge_feed(expenses, incomes, 10)

        assert len(feed) == 10
        dates = [e.date for e in feed]
        assert dates == sorted(dates, reverse=True)

    def test_length_is_min_of_cap_and_inputs(self, make_expense):
        assert len(merge_feed([make_expense()], [], 10)) == 1
        assert merge_feed([make_expense()], [], 0) == []

    def test_equal_dates_keep_expenses_first(self, make_expense, make_income):
        """Ties keep concatenation order: expenses, then incomes."""
        when = datetime(2024, 2, 1, 9, 0)
        e1 = make_expense(date=when)
        e2 = make_expense(date=when)
        i1 = make_income(date=when)

        feed = merge_feed([e1, e2], [i1], 10)

        assert [e.id for e in feed] == [e1.id, e2.id, i1.id]

    def test_negative_size_rejected(self, make_expense):
        with pytest.raises(ValidationError):
            merge_feed([make_expense()], [], -1)

    def test_inputs_untouched(self, make_expense, make_income):
        expenses = [make_expense(date=datetime(2024, 1, 1)), make_expense(date=datetime(2024, 1, 5))]
        incomes = [make_income()]
        order_before = [r.id for r in expenses]

        merge_feed(expenses, incomes, 10)

        assert [r.id for r in expenses] == order_before


class TestComputeFeed:
    """Tests for the owner-checked feed."""

    def test_rejects_foreign_records(self, make_expense):
        with pytest.raises(OwnershipError):
            compute_feed("user-1", [make_expense(owner_id="user-2")], [])

    def test_default_size(self, make_expense):
        expenses = [make_expense(date=datetime(2024, 1, 1) + timedelta(days=i)) for i in range(15)]
        assert len(compute_feed("user-1", expenses, [])) == 10


class TestRecentRecords:
    """Tests for recent_records."""

    def test_latest_first(self, make_income):
        incomes = [make_income(date=datetime(2024, 1, d)) for d in (3, 1, 2)]
        latest = recent_records(incomes, 2)
        assert [r.date.day for r in latest] == [3, 2]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
