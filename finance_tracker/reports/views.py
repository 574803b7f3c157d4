"""
Reporting Views

Read-only projections over the entity store for dashboards and reports.
Nothing here writes, and nothing here is cached: every call re-reads the
store, so a view is always consistent with the last committed mutation.

GROUPING RULES:
- "This month" means the calendar month of `now` (1st 00:00 up to the
  1st of the next month, exclusive)
- The trend covers the last N calendar months including the current one,
  oldest first; transactions outside those months are ignored
- A transaction whose category or account no longer exists is grouped
  under UNKNOWN_LABEL, never dropped and never an error
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from finance_tracker.config import LedgerSettings, get_settings
from finance_tracker.models.entities import (
    Account,
    Category,
    CategoryType,
    Transaction,
    TransactionFilter,
    naive_utc,
)
from finance_tracker.models.results import (
    CashFlowPoint,
    CashFlowSummary,
    ChartDataPoint,
    IncomeExpensePoint,
)
from finance_tracker.store import EntityKind, EntityStore


UNKNOWN_LABEL = "Other"

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Category colour tokens -> hex fills for chart slices
COLOR_HEX = {
    "text-red-500": "#EF4444",
    "text-orange-500": "#F97316",
    "text-amber-500": "#F59E0B",
    "text-yellow-500": "#EAB308",
    "text-lime-500": "#84CC16",
    "text-green-500": "#22C55E",
    "text-emerald-500": "#10B981",
    "text-teal-500": "#14B8A6",
    "text-cyan-500": "#06B6D4",
    "text-sky-500": "#0EA5E9",
    "text-blue-500": "#3B82F6",
    "text-indigo-500": "#6366F1",
    "text-violet-500": "#8B5CF6",
    "text-purple-500": "#A855F7",
    "text-fuchsia-500": "#D946EF",
    "text-pink-500": "#EC4899",
    "text-rose-500": "#F43F5E",
}

ZERO = Decimal("0")


def month_start(moment: datetime) -> datetime:
    return naive_utc(moment).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_label(year: int, month: int) -> str:
    """'Jan 24' style label."""
    return f"{MONTH_ABBR[month - 1]} {year % 100:02d}"


def summarize(transactions: Iterable[Transaction]) -> CashFlowSummary:
    income = ZERO
    expenses = ZERO
    for t in transactions:
        if t.type == CategoryType.INCOME:
            income += t.amount
        else:
            expenses += t.amount
    return CashFlowSummary(income=income, expenses=expenses)


class ReportingViews:
    """
    Chart-ready summaries of the ledger.

    GUARANTEES:
    - Only reads the store
    - Never raises on dangling references
    - Returns Decimal totals, exact to the cent
    """

    def __init__(
        self,
        store: EntityStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().ledger

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _categories(self) -> dict[str, Category]:
        return {c.id: c for c in self._store.list(EntityKind.CATEGORIES)}

    def _accounts(self) -> dict[str, Account]:
        return {a.id: a for a in self._store.list(EntityKind.ACCOUNTS)}

    def category_name(self, category_id: str) -> str:
        category = self._store.get(EntityKind.CATEGORIES, category_id)
        return category.name if category else UNKNOWN_LABEL

    def account_name(self, account_id: str) -> str:
        account = self._store.get(EntityKind.ACCOUNTS, account_id)
        return account.name if account else UNKNOWN_LABEL

    # -------------------------------------------------------------------------
    # Transaction lists
    # -------------------------------------------------------------------------

    def recent_transactions(self, limit: Optional[int] = None) -> list[Transaction]:
        if limit is None:
            limit = self._settings.recent_transactions_limit
        return self._store.list(EntityKind.TRANSACTIONS)[:limit]

    def filter_transactions(self, criteria: Optional[TransactionFilter] = None) -> list[Transaction]:
        """
        Transactions matching every given filter, newest first.
        """
        transactions = self._store.list(EntityKind.TRANSACTIONS)
        if criteria is None:
            return transactions

        categories = self._categories()
        accounts = self._accounts()
        term = (criteria.search or "").lower()

        def matches(t: Transaction) -> bool:
            if criteria.type and t.type != criteria.type:
                return False
            if criteria.category_id and t.category_id != criteria.category_id:
                return False
            if criteria.account_id and t.account_id != criteria.account_id:
                return False
            if criteria.date_from and t.date < criteria.date_from:
                return False
            if criteria.date_to and t.date > criteria.date_to:
                return False
            if term:
                category = categories.get(t.category_id)
                account = accounts.get(t.account_id)
                haystacks = (
                    t.description,
                    category.name if category else "",
                    account.name if account else "",
                )
                if not any(term in h.lower() for h in haystacks):
                    return False
            return True

        return [t for t in transactions if matches(t)]

    def search_transactions(self, term: str) -> list[Transaction]:
        """Case-insensitive match on description, category name or account name."""
        return self.filter_transactions(TransactionFilter(search=term))

    # -------------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------------

    def overall_balance(self) -> Decimal:
        return sum((a.balance for a in self._store.list(EntityKind.ACCOUNTS)), ZERO)

    def cash_flow(self) -> CashFlowSummary:
        """All-time income, expenses and net."""
        return summarize(self._store.list(EntityKind.TRANSACTIONS))

    def _in_month(self, now: datetime) -> list[Transaction]:
        start = month_start(now)
        end = start + relativedelta(months=1)
        return [
            t for t in self._store.list(EntityKind.TRANSACTIONS)
            if start <= t.date < end
        ]

    def monthly_summary(self, now: Optional[datetime] = None) -> CashFlowSummary:
        """Income and expenses in the calendar month of `now`."""
        return summarize(self._in_month(now or datetime.now()))

    # -------------------------------------------------------------------------
    # Breakdown and trends
    # -------------------------------------------------------------------------

    def expense_breakdown(self, now: Optional[datetime] = None) -> list[ChartDataPoint]:
        """
        Expense totals per category name.

        With `now`, only the calendar month of `now` is counted; without
        it, all time. Slices come out in first-seen order (newest first).
        """
        transactions = (
            self._in_month(now) if now is not None
            else self._store.list(EntityKind.TRANSACTIONS)
        )
        categories = self._categories()

        totals: dict[str, Decimal] = {}
        fills: dict[str, Optional[str]] = {}
        for t in transactions:
            if t.type != CategoryType.EXPENSE:
                continue
            category = categories.get(t.category_id)
            name = category.name if category else UNKNOWN_LABEL
            totals[name] = totals.get(name, ZERO) + t.amount
            if category and category.color and name not in fills:
                fills[name] = COLOR_HEX.get(category.color)

        return [
            ChartDataPoint(name=name, value=value, fill=fills.get(name))
            for name, value in totals.items()
        ]

    def income_expense_trend(
        self,
        now: Optional[datetime] = None,
        months: Optional[int] = None,
    ) -> list[IncomeExpensePoint]:
        """One point per calendar month, oldest first, ending with the month of `now`."""
        now = now or datetime.now()
        if months is None:
            months = self._settings.trend_months
        current = month_start(now)

        points: dict[tuple[int, int], IncomeExpensePoint] = {}
        for offset in range(months - 1, -1, -1):
            start = current - relativedelta(months=offset)
            points[(start.year, start.month)] = IncomeExpensePoint(
                name=month_label(start.year, start.month),
                year=start.year,
                month=start.month,
            )

        for t in self._store.list(EntityKind.TRANSACTIONS):
            point = points.get((t.date.year, t.date.month))
            if point is None:
                continue
            if t.type == CategoryType.INCOME:
                point.income += t.amount
            else:
                point.expenses += t.amount

        return list(points.values())

    def net_cash_flow_trend(
        self,
        now: Optional[datetime] = None,
        months: Optional[int] = None,
    ) -> list[CashFlowPoint]:
        return [
            CashFlowPoint(name=point.name, cash_flow=point.net)
            for point in self.income_expense_trend(now, months)
        ]
