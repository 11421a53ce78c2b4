"""Failure kinds and the result type returned by lending operations.

Operations that can be refused (registration, checkout, return) hand back a
``Result`` instead of raising, so a caller can map each failure kind to a
user-facing message without unwinding.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class LendingError(str, Enum):
    """Closed set of reasons a lending operation is refused."""

    BORROWER_NOT_FOUND = "borrower_not_found"
    ITEM_ALREADY_CHECKED_OUT = "item_already_checked_out"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    TRANSACTION_NOT_ACTIVE = "transaction_not_active"
    DUPLICATE_EMAIL = "duplicate_email"
    MISSING_NAME = "missing_name"

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES = {
    LendingError.BORROWER_NOT_FOUND: "Borrower not found",
    LendingError.ITEM_ALREADY_CHECKED_OUT: "This item is already checked out",
    LendingError.TRANSACTION_NOT_FOUND: "Transaction not found",
    LendingError.TRANSACTION_NOT_ACTIVE: "This item is not currently checked out",
    LendingError.DUPLICATE_EMAIL: "Borrower with this email already exists",
    LendingError.MISSING_NAME: "Borrower name is required",
}


class LendingOperationError(Exception):
    """Raised by ``Result.unwrap()`` and by storage adapters on refusal."""

    def __init__(self, error: LendingError, message: Optional[str] = None):
        self.error = error
        self.message = message or error.default_message
        super().__init__(self.message)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a lending operation: a value or a failure kind."""

    value: Optional[T] = None
    error: Optional[LendingError] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        """Create a successful result."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: LendingError, message: Optional[str] = None) -> "Result[T]":
        """Create a failed result."""
        return cls(error=error, message=message or error.default_message)

    @property
    def ok(self) -> bool:
        """Check if the operation succeeded."""
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise LendingOperationError on failure."""
        if self.error is not None:
            raise LendingOperationError(self.error, self.message)
        return self.value
