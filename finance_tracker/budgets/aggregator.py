"""
Budget Aggregation

A budget watches one expense category over a recurring window:
[start_date, start_date + period), repeated every period.

WINDOW RULE: the n-th window starts at start_date + n periods, always
counted from the anchor. Stepping from the previous window instead
would let month-end clamping drift (Jan 31 -> Feb 29 -> Mar 29 -> ...);
counting from the anchor gives Jan 31 -> Feb 29 -> Mar 31 -> Apr 30.
Yearly windows anchored on Feb 29 land on Feb 28 in common years.

The current window for `now` is the last one whose start is <= now.
Before the anchor, the first window is used.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from finance_tracker.config import LedgerSettings, get_settings
from finance_tracker.models.entities import (
    Budget,
    BudgetPeriod,
    CategoryType,
    Transaction,
    naive_utc,
)
from finance_tracker.models.results import BudgetProgress, BudgetStatus, BudgetWindow
from finance_tracker.store import EntityKind, EntityStore


ZERO = Decimal("0")


def shift_period(anchor: datetime, period: BudgetPeriod, count: int) -> datetime:
    """The anchor moved by `count` whole periods (clamped to month end)."""
    if period == BudgetPeriod.MONTHLY:
        return anchor + relativedelta(months=count)
    return anchor + relativedelta(years=count)


def single_window(budget: Budget) -> BudgetWindow:
    """The first window only, ignoring recurrence."""
    return BudgetWindow(
        start=budget.start_date,
        end=shift_period(budget.start_date, budget.period, 1),
    )


def current_window(budget: Budget, now: datetime) -> BudgetWindow:
    """
    The window containing `now` (or the first window if `now` is before it).
    """
    anchor = budget.start_date
    now = naive_utc(now)
    if now < anchor:
        return single_window(budget)

    if budget.period == BudgetPeriod.MONTHLY:
        count = (now.year - anchor.year) * 12 + (now.month - anchor.month)
    else:
        count = now.year - anchor.year

    # The calendar estimate can be one period off around month/day ends
    while count > 0 and shift_period(anchor, budget.period, count) > now:
        count -= 1
    while shift_period(anchor, budget.period, count + 1) <= now:
        count += 1

    return BudgetWindow(
        start=shift_period(anchor, budget.period, count),
        end=shift_period(anchor, budget.period, count + 1),
    )


def matching_transactions(
    budget: Budget,
    transactions: Iterable[Transaction],
    window: BudgetWindow,
) -> list[Transaction]:
    """Expense transactions of the budget's category inside the window."""
    return [
        t for t in transactions
        if t.category_id == budget.category_id
        and t.type == CategoryType.EXPENSE
        and window.contains(t.date)
    ]


def actual_spending(
    budget: Budget,
    transactions: Iterable[Transaction],
    now: datetime,
) -> Decimal:
    """Sum spent against the budget in its current window; 0 when nothing matches."""
    window = current_window(budget, now)
    return sum(
        (t.amount for t in matching_transactions(budget, transactions, window)),
        ZERO,
    )


def classify(
    spent: Decimal,
    amount: Decimal,
    ratio: Decimal,
    warning_ratio: float,
    alert_ratio: float,
) -> BudgetStatus:
    """Place a spent/amount ratio in a presentation band."""
    if spent > amount:
        return BudgetStatus.OVER_BUDGET
    if ratio >= Decimal(str(alert_ratio)):
        return BudgetStatus.ALERT
    if ratio >= Decimal(str(warning_ratio)):
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


class BudgetAggregator:
    """
    Budget progress over the transactions held in the entity store.

    The store is read on every call; nothing is cached.
    """

    def __init__(
        self,
        store: EntityStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger

    def current_window(self, budget: Budget, now: Optional[datetime] = None) -> BudgetWindow:
        return current_window(budget, now or datetime.now())

    def transactions_in_window(
        self,
        budget: Budget,
        now: Optional[datetime] = None,
    ) -> list[Transaction]:
        window = self.current_window(budget, now)
        return matching_transactions(budget, self._store.list(EntityKind.TRANSACTIONS), window)

    def actual_spending(self, budget: Budget, now: Optional[datetime] = None) -> Decimal:
        return actual_spending(
            budget,
            self._store.list(EntityKind.TRANSACTIONS),
            now or datetime.now(),
        )

    def progress(self, budget: Budget, now: Optional[datetime] = None) -> BudgetProgress:
        """
        Spent, signed remaining, ratio and band for a budget's current window.

        The ratio is spent / amount, or 0 when the amount is not positive.
        """
        now = now or datetime.now()
        window = current_window(budget, now)
        spent = sum(
            (t.amount for t in matching_transactions(
                budget, self._store.list(EntityKind.TRANSACTIONS), window
            )),
            ZERO,
        )
        ratio = spent / budget.amount if budget.amount > ZERO else ZERO

        return BudgetProgress(
            budget_id=budget.id,
            category_id=budget.category_id,
            window=window,
            amount=budget.amount,
            spent=spent,
            remaining=budget.amount - spent,
            ratio=ratio,
            status=classify(
                spent,
                budget.amount,
                ratio,
                self._settings.budget_warning_ratio,
                self._settings.budget_alert_ratio,
            ),
        )

    def progress_all(self, now: Optional[datetime] = None) -> list[BudgetProgress]:
        now = now or datetime.now()
        return [self.progress(budget, now) for budget in self._store.list(EntityKind.BUDGETS)]
