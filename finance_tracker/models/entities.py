"""
Core Data Models for Finance Tracker

These models define the schemas for everything the ledger stores.
They are designed to:
1. Enforce type safety at runtime
2. Be immutable once built, so every read is a snapshot
3. Be serializable for the collection storage
4. Keep money in Decimal from the first keystroke to the last sum

Domain rules (positive amounts, required references, category/type
agreement) are NOT enforced here. They live in the validation package so
the ledger can report them as one EntityValidationError instead of a
pydantic error halfway through a form.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Kinds of account money can sit in."""
    BANK = "bank"
    EWALLET = "e_wallet"
    CREDIT_CARD = "credit_card"
    CASH = "cash"


class CategoryType(str, Enum):
    """
    Direction of money flow.

    Used both by categories and by transactions. A transaction's type
    decides the sign of its balance impact.
    """
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    """Recurrence of a budget window."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes are converted to UTC and stored naive, like every other date here."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Account(BaseModel):
    """
    A place money is kept.

    `balance` is derived from the transaction history but stored:
    balance == opening_balance + sum of balance impacts of the account's
    transactions. Only the ledger engine moves it once transactions exist.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        default="",
        description="Unique account ID (empty until stored)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    type: AccountType = Field(
        default=AccountType.BANK,
        description="Account kind"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        decimal_places=2,
        description="Current balance, signed"
    )
    opening_balance: Decimal = Field(
        default=Decimal("0"),
        decimal_places=2,
        description="Balance before any recorded transaction"
    )
    icon: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Icon identifier for presentation"
    )

    @model_validator(mode="before")
    @classmethod
    def default_opening_balance(cls, data: Any) -> Any:
        """
        Records saved without an opening balance start from their balance.

        The entity store corrects this after loading, once the account's
        transactions are known.
        """
        if isinstance(data, dict) and data.get("opening_balance") is None:
            data = {**data, "opening_balance": data.get("balance", Decimal("0"))}
        return data


class Category(BaseModel):
    """A label for transactions; its type must match theirs."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = ""
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    type: CategoryType = CategoryType.EXPENSE
    icon: Optional[str] = None
    color: Optional[str] = Field(
        default=None,
        description="Presentation colour token, e.g. 'text-red-500'"
    )


class TransactionDraft(BaseModel):
    """
    A transaction that has not been recorded yet.

    Fields are deliberately lenient (empty strings, any amount) so that
    incomplete input reaches the validator and comes back as a list of
    issues rather than a parse failure.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    date: datetime = Field(
        ...,
        description="When the money moved"
    )
    description: str = Field(
        default="",
        max_length=200,
    )
    amount: Decimal = Field(
        ...,
        decimal_places=2,
        description="Unsigned amount; the sign comes from `type`"
    )
    type: CategoryType = CategoryType.EXPENSE
    category_id: str = ""
    account_id: str = ""

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: datetime) -> datetime:
        return naive_utc(v)

    @property
    def signed_amount(self) -> Decimal:
        """Balance impact: +amount for income, -amount for expense."""
        if self.type == CategoryType.INCOME:
            return self.amount
        return -self.amount


class Transaction(TransactionDraft):
    """A recorded transaction. `id` never changes once assigned."""

    id: str = Field(
        ...,
        min_length=1,
        description="Unique transaction ID"
    )

    @classmethod
    def from_draft(cls, draft: TransactionDraft, transaction_id: str) -> "Transaction":
        return cls(**{**draft.model_dump(), "id": transaction_id})


class Budget(BaseModel):
    """
    A spending limit for one expense category.

    The window [start_date, start_date + period) repeats every period;
    see finance_tracker.budgets for how the current one is found.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = ""
    category_id: str = Field(
        ...,
        description="Expense category the budget watches"
    )
    amount: Decimal = Field(
        ...,
        decimal_places=2,
        description="Limit per period"
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: datetime = Field(
        ...,
        description="Anchor of the first window"
    )

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: datetime) -> datetime:
        return naive_utc(v)


# =============================================================================
# QUERY / IDENTITY MODELS
# =============================================================================

class TransactionFilter(BaseModel):
    """
    Optional filters for listing transactions.

    All filters are ANDed. `search` matches description, category name
    or account name, case-insensitively. Date bounds are inclusive.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    search: Optional[str] = None
    type: Optional[CategoryType] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @field_validator("date_from", "date_to")
    @classmethod
    def validate_bounds(cls, v: Optional[datetime]) -> Optional[datetime]:
        return naive_utc(v)

    @model_validator(mode="after")
    def validate_range(self) -> "TransactionFilter":
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError("date_to cannot be before date_from")
        return self


class Identity(BaseModel):
    """The signed-in user. Nothing in the ledger depends on it."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    email: str = Field(..., min_length=3, max_length=254)
    name: Optional[str] = None
