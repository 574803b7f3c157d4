"""
Derived Models

Everything here is computed from the stored entities and never stored
itself: validation outcomes, budget windows and progress, and the
chart-ready points produced by the reporting views.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'non_positive', 'type_mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class ValidationResult(BaseModel):
    """Outcome of validating one draft, record or budget."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def summary(self) -> str:
        """One line per error, for exception messages."""
        return "; ".join(
            f"{issue.field}: {issue.message}"
            for issue in self.issues
            if issue.severity == "error"
        )


# =============================================================================
# BUDGET MODELS
# =============================================================================

class BudgetWindow(BaseModel):
    """Half-open interval [start, end) a budget is evaluated over."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_order(self) -> "BudgetWindow":
        if self.end <= self.start:
            raise ValueError("Budget window end must be after its start")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end


class BudgetStatus(str, Enum):
    """Presentation band for a budget's spent/amount ratio."""
    ON_TRACK = "on_track"
    WARNING = "warning"
    ALERT = "alert"
    OVER_BUDGET = "over_budget"


class BudgetProgress(BaseModel):
    """
    How far a budget has been used in its current window.

    `remaining` is signed: negative once spending passes the limit.
    `ratio` is 0 when the budget amount is not positive.
    """
    model_config = ConfigDict(frozen=True)

    budget_id: str
    category_id: str
    window: BudgetWindow
    amount: Decimal
    spent: Decimal
    remaining: Decimal
    ratio: Decimal
    status: BudgetStatus

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.amount

    @property
    def percent_used(self) -> Decimal:
        return self.ratio * 100


# =============================================================================
# REPORTING MODELS
# =============================================================================

class ChartDataPoint(BaseModel):
    """One slice of a breakdown chart."""

    name: str
    value: Decimal
    fill: Optional[str] = None


class IncomeExpensePoint(BaseModel):
    """Income and expenses for one calendar month."""

    name: str = Field(..., description="Month label, e.g. 'Jan 24'")
    year: int
    month: int = Field(..., ge=1, le=12)
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class CashFlowPoint(BaseModel):
    name: str
    cash_flow: Decimal


class CashFlowSummary(BaseModel):
    """Income, expenses and their difference over some period."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses
