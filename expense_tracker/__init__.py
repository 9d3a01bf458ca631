"""
Expense Tracker - Summary Engine

Per-owner income and expense records with the dashboard computations
built on top of them: totals, category breakdowns, monthly and daily
trends, balance and a recent transactions feed.

DESIGN PRINCIPLES:
1. Filters are validated before any computation
2. Summaries are pure functions of one storage snapshot
3. Storage failures surface; they never become zeros
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
