"""
Ledger Exceptions

Every failure the ledger reports on purpose derives from LedgerError, so a
caller can catch the whole family in one place. None of them is fatal:
the store is left exactly as it was before the failed call.
"""

from typing import Optional

from finance_tracker.models.results import ValidationResult


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class NotFoundError(LedgerError):
    """An update, delete or lookup named an id that does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"No {kind} record with id '{entity_id}'")


class ReferentialIntegrityError(LedgerError):
    """Attempted to delete an entity that transactions still reference."""

    def __init__(self, kind: str, entity_id: str, reference_count: int):
        self.kind = kind
        self.entity_id = entity_id
        self.reference_count = reference_count
        super().__init__(
            f"Cannot delete {kind} '{entity_id}': "
            f"{reference_count} transaction(s) still reference it"
        )


class EntityValidationError(LedgerError):
    """Input failed validation (missing field, non-positive amount, type mismatch)."""

    def __init__(self, message: str, result: Optional[ValidationResult] = None):
        self.result = result or ValidationResult()
        super().__init__(message)

    @classmethod
    def from_result(cls, subject: str, result: ValidationResult) -> "EntityValidationError":
        return cls(f"Invalid {subject}: {result.summary()}", result)


class BalanceLockedError(EntityValidationError):
    """A direct balance edit was attempted on an account that has transactions."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Balance of account '{account_id}' is derived from its transactions "
            "and cannot be edited directly"
        )
