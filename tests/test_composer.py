"""Tests for SummaryComposer."""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from expense_tracker.errors import OwnershipError
from expense_tracker.models.summary import TransactionCountPolicy
from expense_tracker.summary import SummaryComposer


class TestSummaryComposer:
    """Tests for combining both kinds into one summary."""

    def test_empty_inputs(self, now):
        """Nothing recorded yet: zeros everywhere, no error."""
        combined = SummaryComposer().compose("user-1", [], [], [], [], now)

        assert combined.income.total == Decimal("0")
        assert combined.expense.total == Decimal("0")
        assert combined.balance == Decimal("0")
        assert combined.transaction_count == 0
        for summary in (combined.income, combined.expense):
            assert summary.category_buckets == []
            assert summary.monthly_buckets == []
            assert summary.daily_buckets == []

    def test_balance_can_be_negative(self, now, make_income, make_expense):
        incomes = [make_income(amount="100")]
        expenses = [make_expense(amount="80"), make_expense(amount="70")]
        combined = SummaryComposer().compose("user-1", incomes, incomes, expenses, expenses, now)

        assert combined.balance == Decimal("-50")
        assert combined.balance == combined.income.total - combined.expense.total

    def test_filtered_count_policy(self, now, make_income, make_expense):
        income_all = [make_income(date=datetime(2024, 1, d)) for d in range(1, 16)]
        income_filtered = income_all[:3]
        expenses = [make_expense(), make_expense()]

        composer = SummaryComposer(count_policy=TransactionCountPolicy.FILTERED)
        combined = composer.compose("user-1", income_filtered, income_all, expenses, expenses, now)

        assert combined.transaction_count == 5
        assert combined.count_policy == TransactionCountPolicy.FILTERED

    def test_feed_scoped_count_policy(self, now, make_income, make_expense):
        """Expenses follow the filter, incomes are the latest slice."""
        income_all = [make_income(date=datetime(2024, 1, d)) for d in range(1, 16)]
        income_filtered = income_all[:3]
        expenses = [make_expense(), make_expense()]

        composer = SummaryComposer(
            recent_income_limit=10,
            count_policy=TransactionCountPolicy.FEED_SCOPED,
        )
        combined = composer.compose("user-1", income_filtered, income_all, expenses, expenses, now)

        assert combined.transaction_count == 12

    def test_feed_scoped_count_with_few_incomes(self, now, make_income, make_expense):
        incomes = [make_income()]
        composer = SummaryComposer(count_policy="feed_scoped")
        combined = composer.compose("user-1", incomes, incomes, [make_expense()], [make_expense()], now)
        assert combined.transaction_count == 2

    def test_idempotent(self, now, make_income, make_expense):
        """Same snapshot, same now: same result."""
        incomes = [make_income(amount="300", date=now - timedelta(days=d)) for d in range(5)]
        expenses = [make_expense(amount="12.5", date=now - timedelta(days=d)) for d in range(40)]
        composer = SummaryComposer()

        first = composer.compose("user-1", incomes, incomes, expenses, expenses, now)
        second = composer.compose("user-1", incomes, incomes, expenses, expenses, now)
        assert first == second

    def test_generated_at_is_now(self, now):
        combined = SummaryComposer().compose("user-1", [], [], [], [], now)
        assert combined.generated_at == now

    def test_rejects_foreign_records(self, now, make_expense):
        foreign = [make_expense(owner_id="user-2")]
        with pytest.raises(OwnershipError):
            SummaryComposer().compose("user-1", [], [], foreign, foreign, now)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
