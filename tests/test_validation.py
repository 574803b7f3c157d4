"""
Tests for entry validation.
"""

from datetime import datetime
from decimal import Decimal

from finance_tracker.models.entities import Budget, CategoryType
from finance_tracker.validation import LedgerValidator


class TestTransactionValidation:
    """Tests for validate_transaction."""

    def test_valid_draft(self, store, make_draft):
        result = LedgerValidator(store).validate_transaction(make_draft())
        assert result.is_valid
        assert result.issues == []

    def test_collects_every_error(self, store, make_draft):
        draft = make_draft(description="", amount=Decimal("0"), category_id="", account_id="")
        result = LedgerValidator(store).validate_transaction(draft)
        assert result.error_count == 4
        assert {i.field for i in result.issues} == {"description", "amount", "category_id", "account_id"}

    def test_type_mismatch(self, store, make_draft):
        result = LedgerValidator(store).validate_transaction(make_draft(category_id="cat-salary"))
        assert [i.issue_type for i in result.issues] == ["type_mismatch"]

    def test_unknown_references_are_warnings(self, store, make_draft):
        draft = make_draft(category_id="cat-gone", account_id="acc-gone")
        result = LedgerValidator(store).validate_transaction(draft)
        assert result.is_valid
        assert len(result.warnings) == 2

    def test_without_store_only_field_checks(self, make_draft):
        draft = make_draft(type=CategoryType.INCOME, category_id="anything", account_id="anywhere")
        assert LedgerValidator().validate_transaction(draft).issues == []


class TestBudgetValidation:
    """Tests for validate_budget."""

    def budget(self, **overrides):
        fields = {
            "category_id": "cat-food",
            "amount": Decimal("500"),
            "start_date": datetime(2024, 1, 1),
        }
        fields.update(overrides)
        return Budget(**fields)

    def test_valid_budget(self, store):
        assert LedgerValidator(store).validate_budget(self.budget()).is_valid

    def test_non_positive_amount(self, store):
        result = LedgerValidator(store).validate_budget(self.budget(amount=Decimal("-1")))
        assert [i.issue_type for i in result.issues] == ["non_positive"]

    def test_income_category_rejected(self, store):
        result = LedgerValidator(store).validate_budget(self.budget(category_id="cat-salary"))
        assert result.has_errors
        assert result.issues[0].issue_type == "type_mismatch"

    def test_missing_category(self, store):
        result = LedgerValidator(store).validate_budget(self.budget(category_id=""))
        assert result.issues[0].issue_type == "missing"


class TestSummary:
    """Tests for the display summary."""

    def test_all_passed(self, store, make_draft):
        validator = LedgerValidator(store)
        assert validator.get_user_friendly_summary(
            validator.validate_transaction(make_draft())
        ) == "All checks passed."

    def test_lists_errors_and_warnings(self, store, make_draft):
        validator = LedgerValidator(store)
        result = validator.validate_transaction(make_draft(description="", account_id="acc-gone"))
        summary = validator.get_user_friendly_summary(result)
        assert "Please fix the following:" in summary
        assert "Description is required" in summary
        assert "Please verify the following:" in summary
