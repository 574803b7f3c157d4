"""
Data Models Package

All Pydantic models used in the Finance Tracker.
All data flowing through the ledger must conform to these schemas.
"""

from finance_tracker.models.entities import (
    Account,
    AccountType,
    Budget,
    BudgetPeriod,
    Category,
    CategoryType,
    Identity,
    Transaction,
    TransactionDraft,
    TransactionFilter,
)
from finance_tracker.models.results import (
    BudgetProgress,
    BudgetStatus,
    BudgetWindow,
    CashFlowPoint,
    CashFlowSummary,
    ChartDataPoint,
    IncomeExpensePoint,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "Account",
    "AccountType",
    "Budget",
    "BudgetPeriod",
    "Category",
    "CategoryType",
    "Identity",
    "Transaction",
    "TransactionDraft",
    "TransactionFilter",
    # Derived
    "BudgetProgress",
    "BudgetStatus",
    "BudgetWindow",
    "CashFlowPoint",
    "CashFlowSummary",
    "ChartDataPoint",
    "IncomeExpensePoint",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
