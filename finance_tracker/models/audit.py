"""
Audit Models for Finance Tracker

Every mutation of the ledger produces an audit event. This gives:
1. Traceability of how a balance came to be what it is
2. Debugging information when a reconciliation finds drift
3. A record of the guarded operations a caller was refused

Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Accounts
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_DELETED = "account_deleted"
    BALANCE_ADJUSTED = "balance_adjusted"
    BALANCE_EDIT_BLOCKED = "balance_edit_blocked"
    ACCOUNT_RECONCILED = "account_reconciled"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Budgets
    BUDGET_ADDED = "budget_added"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"

    # Guards
    DELETE_BLOCKED = "delete_blocked"

    # System events
    DATA_RESET = "data_reset"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="'transaction', 'account', 'category' or 'budget'"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_record(self) -> dict:
        """
        Convert to a flat record for audit storage.

        `details` is JSON-encoded so every value in the record is a string.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type or "",
            "entity_id": self.entity_id or "",
            "description": self.description,
            "details_json": json.dumps(self.details, default=str) if self.details else "",
            "error_message": self.error_message or "",
        }


def _money(value: Decimal) -> str:
    return str(value)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(tx, balance_changes)
        event = AuditEventBuilder.delete_blocked("category", category_id, 3)
    """

    @staticmethod
    def transaction_added(
        transaction_id: str,
        account_id: str,
        signed_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction recorded: {_money(signed_amount)} on {account_id}",
            details={
                "account_id": account_id,
                "signed_amount": _money(signed_amount),
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        balance_changes: dict[str, Decimal],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated, {len(balance_changes)} account(s) adjusted",
            details={
                "balance_changes": {k: _money(v) for k, v in balance_changes.items()},
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        account_id: str,
        reversed_amount: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction deleted, {_money(reversed_amount)} returned to {account_id}",
            details={
                "account_id": account_id,
                "reversed_amount": _money(reversed_amount),
            },
        )

    @staticmethod
    def transaction_rejected(
        transaction_id: Optional[str],
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction rejected with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def entity_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: Optional[str] = None,
    ) -> AuditEvent:
        """Plain add/update/delete of an account, category or budget."""
        verb = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {verb}: {name or entity_id}",
        )

    @staticmethod
    def balance_adjusted(
        account_id: str,
        old_balance: Decimal,
        new_balance: Decimal,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_ADJUSTED,
            entity_type="account",
            entity_id=account_id,
            description=f"Balance set directly: {_money(old_balance)} -> {_money(new_balance)}",
            details={
                "old_balance": _money(old_balance),
                "new_balance": _money(new_balance),
            },
        )

    @staticmethod
    def balance_edit_blocked(account_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_EDIT_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type="account",
            entity_id=account_id,
            description="Direct balance edit refused: account has transactions",
        )

    @staticmethod
    def account_reconciled(
        account_id: str,
        stored_balance: Decimal,
        expected_balance: Decimal,
    ) -> AuditEvent:
        drifted = stored_balance != expected_balance
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_RECONCILED,
            severity=AuditSeverity.WARNING if drifted else AuditSeverity.INFO,
            entity_type="account",
            entity_id=account_id,
            description=(
                f"Balance corrected from {_money(stored_balance)} to {_money(expected_balance)}"
                if drifted
                else "Balance already consistent"
            ),
            details={
                "stored_balance": _money(stored_balance),
                "expected_balance": _money(expected_balance),
            },
        )

    @staticmethod
    def delete_blocked(
        entity_type: str,
        entity_id: str,
        reference_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_BLOCKED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Delete refused: {reference_count} transaction(s) still reference this {entity_type}",
            details={"reference_count": reference_count},
        )

    @staticmethod
    def data_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_RESET,
            severity=AuditSeverity.WARNING,
            description="All collections reset to defaults",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
