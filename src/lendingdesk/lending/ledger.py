"""Loan ledger: durable storage of loan transactions.

The engine talks to ``LoanLedger``; ``SqlLoanLedger`` backs it with the
SQLite database. Rows never leave this module; callers get frozen
``Transaction`` records.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import literal_column, select, update
from sqlalchemy.exc import IntegrityError

from ..db.models import to_iso
from ..db.sqlite import Database
from ..results import LendingError, LendingOperationError
from .models import LoanRow
from .schemas import Transaction, TransactionStatus

# Insertion order, to break ties between rows created at the same instant
_ROWID = literal_column("loans.rowid")


class LoanLedger(ABC):
    """Append-mostly collection of loan transactions."""

    @abstractmethod
    def append(
        self,
        item_id: str,
        borrower_id: str,
        checkout_at: datetime,
        due_at: datetime,
    ) -> Transaction:
        """Record a new active loan.

        Raises:
            LendingOperationError: ITEM_ALREADY_CHECKED_OUT if the item
                already has an active loan
        """

    @abstractmethod
    def mark_returned(
        self,
        transaction_id: str,
        return_at: datetime,
        fine_amount: Decimal,
    ) -> Transaction:
        """Close an active loan.

        Raises:
            LendingOperationError: TRANSACTION_NOT_FOUND or
                TRANSACTION_NOT_ACTIVE
        """

    @abstractmethod
    def get(self, transaction_id: str) -> Optional[Transaction]:
        """Get a transaction by ID."""

    @abstractmethod
    def find_active_for_item(self, item_id: str) -> list[Transaction]:
        """All active transactions for an item."""

    @abstractmethod
    def for_borrower(self, borrower_id: str) -> list[Transaction]:
        """All transactions for a borrower, newest first."""

    @abstractmethod
    def active(self, due_before: Optional[datetime] = None) -> list[Transaction]:
        """All active transactions, optionally only those due before an instant."""

    @abstractmethod
    def all(self) -> list[Transaction]:
        """Every transaction, oldest first."""


class SqlLoanLedger(LoanLedger):
    """Loan ledger stored in the ``loans`` table."""

    def __init__(self, db: Database):
        """Initialize loan ledger.

        Args:
            db: Database instance
        """
        self.db = db

    def append(
        self,
        item_id: str,
        borrower_id: str,
        checkout_at: datetime,
        due_at: datetime,
    ) -> Transaction:
        try:
            with self.db.get_session() as session:
                row = LoanRow(
                    item_id=item_id,
                    borrower_id=borrower_id,
                    status=TransactionStatus.ACTIVE.value,
                    checkout_at=to_iso(checkout_at),
                    due_at=to_iso(due_at),
                    return_at=None,
                    fine_amount=Decimal("0"),
                    created_at=to_iso(checkout_at),
                )
                session.add(row)
                session.flush()
                return Transaction.model_validate(row)
        except IntegrityError:
            raise LendingOperationError(LendingError.ITEM_ALREADY_CHECKED_OUT)

    def mark_returned(
        self,
        transaction_id: str,
        return_at: datetime,
        fine_amount: Decimal,
    ) -> Transaction:
        with self.db.get_session() as session:
            # Conditional update: only an active row may transition
            result = session.execute(
                update(LoanRow)
                .where(
                    LoanRow.id == transaction_id,
                    LoanRow.status == TransactionStatus.ACTIVE.value,
                )
                .values(
                    status=TransactionStatus.RETURNED.value,
                    return_at=to_iso(return_at),
                    fine_amount=fine_amount,
                )
            )

            row = session.get(LoanRow, transaction_id, populate_existing=True)
            if row is None:
                raise LendingOperationError(LendingError.TRANSACTION_NOT_FOUND)
            if result.rowcount == 0:
                raise LendingOperationError(LendingError.TRANSACTION_NOT_ACTIVE)

            return Transaction.model_validate(row)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        with self.db.get_session() as session:
            row = session.get(LoanRow, transaction_id)
            return Transaction.model_validate(row) if row else None

    def find_active_for_item(self, item_id: str) -> list[Transaction]:
        stmt = (
            select(LoanRow)
            .where(
                LoanRow.item_id == item_id,
                LoanRow.status == TransactionStatus.ACTIVE.value,
            )
            .order_by(LoanRow.created_at, _ROWID)
        )
        return self._fetch(stmt)

    def for_borrower(self, borrower_id: str) -> list[Transaction]:
        stmt = (
            select(LoanRow)
            .where(LoanRow.borrower_id == borrower_id)
            .order_by(LoanRow.created_at.desc(), _ROWID.desc())
        )
        return self._fetch(stmt)

    def active(self, due_before: Optional[datetime] = None) -> list[Transaction]:
        stmt = select(LoanRow).where(LoanRow.status == TransactionStatus.ACTIVE.value)
        if due_before is not None:
            stmt = stmt.where(LoanRow.due_at < to_iso(due_before))
        stmt = stmt.order_by(LoanRow.due_at, _ROWID)
        return self._fetch(stmt)

    def all(self) -> list[Transaction]:
        return self._fetch(select(LoanRow).order_by(LoanRow.created_at, _ROWID))

    def _fetch(self, stmt) -> list[Transaction]:
        with self.db.get_session() as session:
            rows = session.execute(stmt).scalars().all()
            return [Transaction.model_validate(row) for row in rows]
