"""
Entry Validation

Checks input before the ledger records it:

- Required fields: description, category and account references
- Amounts: must be strictly positive (the sign comes from the type)
- Category agreement: a transaction's type must match its category's
  type, and budgets may only watch expense categories

References to accounts or categories that do not exist are NOT errors:
the ledger does not enforce foreign keys, and read-side views show such
records as "unknown". They are reported as warnings.

IMPORTANT: Validation never fixes anything. It reports, and the ledger
refuses the operation if any error-level issue was found.
"""

from decimal import Decimal
from typing import Optional

from finance_tracker.models.entities import (
    Budget,
    Category,
    CategoryType,
    TransactionDraft,
)
from finance_tracker.models.results import ValidationIssue, ValidationResult
from finance_tracker.store import EntityKind, EntityStore


class LedgerValidator:
    """
    Validates transaction drafts and budgets against the current store.

    With no store, only the field-level checks run.
    """

    def __init__(self, store: Optional[EntityStore] = None):
        self._store = store

    def _category(self, category_id: str) -> Optional[Category]:
        if self._store is None or not category_id:
            return None
        return self._store.get(EntityKind.CATEGORIES, category_id)

    def _account_known(self, account_id: str) -> bool:
        if self._store is None or not account_id:
            return True
        return self._store.contains(EntityKind.ACCOUNTS, account_id)

    def validate_transaction(self, draft: TransactionDraft) -> ValidationResult:
        """
        Validate a draft (or a full Transaction, which is a draft with an id).
        """
        issues = []

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))

        if draft.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="non_positive",
                message=f"Amount must be greater than zero (got {draft.amount})",
            ))

        if not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="A category is required",
            ))
        else:
            category = self._category(draft.category_id)
            if category is not None and category.type != draft.type:
                issues.append(ValidationIssue(
                    field="type",
                    issue_type="type_mismatch",
                    message=(
                        f"A {draft.type.value} transaction cannot use "
                        f"{category.type.value} category '{category.name}'"
                    ),
                ))
            elif category is None and self._store is not None:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="unknown_reference",
                    message=f"Category '{draft.category_id}' does not exist",
                    severity="warning",
                ))

        if not draft.account_id:
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="missing",
                message="An account is required",
            ))
        elif not self._account_known(draft.account_id):
            issues.append(ValidationIssue(
                field="account_id",
                issue_type="unknown_reference",
                message=f"Account '{draft.account_id}' does not exist",
                severity="warning",
            ))

        return ValidationResult(issues=issues)

    def validate_budget(self, budget: Budget) -> ValidationResult:
        issues = []

        if budget.amount <= Decimal("0"):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="non_positive",
                message=f"Budget amount must be greater than zero (got {budget.amount})",
            ))

        if not budget.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="A category is required",
            ))
        else:
            category = self._category(budget.category_id)
            if category is not None and category.type != CategoryType.EXPENSE:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="type_mismatch",
                    message=f"Budgets can only watch expense categories, '{category.name}' is income",
                ))

        return ValidationResult(issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a short summary of validation results for display.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"   - {issue.message}")

        if result.warnings:
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   - {warning}")

        return "\n".join(lines)
