"""
Core Data Models for the Expense Tracker

Two value objects flow through the system:
1. ExpenseID - a non-negative integer identity
2. Expense   - an immutable (id, category, amount) record

DESIGN DECISION: Expense equality is IDENTITY equality.
Two expenses with the same ExpenseID are the same logical entry,
whatever their category or amount. The ledger's merge logic
relies on this, so do not "fix" it to structural equality.

Both models are frozen. Any "change" produces a new value.
"""

import math
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from expense_tracker.exceptions import InvalidArgumentError, NullArgumentError


def normalize_category(category: str) -> str:
    """
    Build the ledger key for a category.

    "  Food " and "FOOD" share the key "food".
    """
    return category.strip().casefold() if category is not None else ""


class ExpenseID(BaseModel):
    """
    Immutable expense identifier.

    Equality and hash are by value. str(ExpenseID(7)) == "7".
    """
    model_config = ConfigDict(frozen=True)

    value: int = Field(
        ...,
        ge=0,
        description="Non-negative numeric identifier"
    )

    def __init__(self, value: int, **data: Any) -> None:
        super().__init__(value=value, **data)

    @model_validator(mode='before')
    @classmethod
    def check_value(cls, data: Any) -> Any:
        """Reject missing and negative identifiers with our own error types."""
        if isinstance(data, dict):
            value = data.get("value")
            if value is None:
                raise NullArgumentError("id cannot be None")
            if isinstance(value, (int, float)) and value < 0:
                raise InvalidArgumentError("id must be non-negative")
        return data

    def __str__(self) -> str:
        return str(self.value)


class Expense(BaseModel):
    """
    A single expense entry, or the aggregate for one category.

    Invariants:
    - id is present
    - category is non-empty (not just whitespace)
    - amount is a finite number >= 0
    """
    model_config = ConfigDict(frozen=True)

    id: ExpenseID = Field(
        ...,
        description="Logical identity of this entry"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category as entered by the user"
    )
    amount: float = Field(
        ...,
        ge=0,
        description="Amount in the session currency"
    )

    def __init__(
        self,
        id: ExpenseID,
        category: str,
        amount: float,
        **data: Any,
    ) -> None:
        super().__init__(id=id, category=category, amount=amount, **data)

    @model_validator(mode='before')
    @classmethod
    def check_fields(cls, data: Any) -> Any:
        """Raise NullArgumentError / InvalidArgumentError before pydantic does."""
        if not isinstance(data, dict):
            return data

        if data.get("id") is None:
            raise NullArgumentError("id cannot be None")

        category = data.get("category")
        if category is None:
            raise NullArgumentError("category cannot be None")
        if isinstance(category, str) and not category.strip():
            raise InvalidArgumentError("category cannot be empty")

        amount = data.get("amount")
        if amount is None:
            raise NullArgumentError("amount cannot be None")
        if isinstance(amount, (int, float)):
            if not math.isfinite(amount):
                raise InvalidArgumentError("amount must be a finite number")
            if amount < 0:
                raise InvalidArgumentError("amount must be >= 0")

        return data

    @field_validator('amount')
    @classmethod
    def drop_negative_zero(cls, v: float) -> float:
        # -0.0 would otherwise render as "-0.00"
        return v + 0.0

    def with_added_amount(self, delta: float) -> "Expense":
        """
        Produce a new Expense with `delta` added to the amount.

        Same id, same category. Does not modify this object.

        Raises:
            InvalidArgumentError: If delta < 0
        """
        if delta is None:
            raise NullArgumentError("delta cannot be None")
        if delta < 0:
            raise InvalidArgumentError("delta must be >= 0")
        return Expense(self.id, self.category, self.amount + delta)

    def with_category_and_amount(self, category: str, amount: float) -> "Expense":
        """Produce a new Expense with the same id and a new category/amount."""
        return Expense(self.id, category, amount)

    @property
    def key(self) -> str:
        """Normalized category key used by the ledger."""
        return normalize_category(self.category)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Expense):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.category} - {self.amount:.2f}"
