"""Budget aggregation package."""

from finance_tracker.budgets.aggregator import (
    BudgetAggregator,
    actual_spending,
    classify,
    current_window,
    matching_transactions,
    shift_period,
    single_window,
)

__all__ = [
    "BudgetAggregator",
    "actual_spending",
    "classify",
    "current_window",
    "matching_transactions",
    "shift_period",
    "single_window",
]
