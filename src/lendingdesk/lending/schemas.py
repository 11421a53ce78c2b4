"""Pydantic schemas for loan transactions."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .policy import days_overdue


class TransactionStatus(str, Enum):
    """Status of a loan transaction. RETURNED is terminal."""

    ACTIVE = "active"
    RETURNED = "returned"


class Transaction(BaseModel):
    """One checkout-to-return cycle for one item."""

    id: str
    item_id: str
    borrower_id: str
    checkout_at: datetime
    due_at: datetime
    return_at: Optional[datetime] = None
    status: TransactionStatus
    fine_amount: Decimal
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE

    def is_overdue(self, now: datetime) -> bool:
        """Check if the loan is still out and past its due instant."""
        return self.is_active and self.due_at < now

    def days_overdue(self, now: datetime) -> int:
        """Whole days overdue at ``now``, a partial day counting as one."""
        if not self.is_active:
            return 0
        return days_overdue(self.due_at, now)
