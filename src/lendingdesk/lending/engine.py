"""Borrowing and fine engine.

Orchestrates checkout, return, overdue detection and fine computation
against a loan ledger and a borrower directory.
"""

import logging
import threading
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from ..borrowers.directory import BorrowerDirectory
from ..borrowers.schemas import Borrower
from ..clock import Clock, SystemClock, as_utc
from ..config import DEFAULT_DAILY_FINE, DEFAULT_LOAN_DAYS, get_config
from ..db.sqlite import Database, get_db
from ..results import LendingError, LendingOperationError, Result
from .ledger import LoanLedger, SqlLoanLedger
from .policy import due_instant, fine_for
from .schemas import Transaction

logger = logging.getLogger(__name__)

Money = Union[Decimal, int, float, str]


class BorrowingEngine:
    """Manages the loan lifecycle: Active -> Returned.

    Every mutating operation runs under a single write lock, so the
    check-then-write in ``checkout`` cannot interleave with another
    checkout of the same item. Each operation reads the clock at most once.
    """

    def __init__(
        self,
        ledger: LoanLedger,
        directory: BorrowerDirectory,
        clock: Optional[Clock] = None,
        default_loan_days: int = DEFAULT_LOAN_DAYS,
        default_daily_fine: Money = DEFAULT_DAILY_FINE,
    ):
        """Initialize borrowing engine.

        Args:
            ledger: Loan ledger to read and append to
            directory: Borrower directory, read-only from here
            clock: Time source (default: system clock)
            default_loan_days: Loan period used when checkout gets none
            default_daily_fine: Daily rate used when calculate_fine gets none
        """
        if default_loan_days < 0:
            raise ValueError(f"Loan period cannot be negative: {default_loan_days}")

        self.ledger = ledger
        self.directory = directory
        self.clock = clock or SystemClock()
        self.default_loan_days = default_loan_days
        self.default_daily_fine = Decimal(str(default_daily_fine))
        if self.default_daily_fine < 0:
            raise ValueError(f"Daily fine rate cannot be negative: {self.default_daily_fine}")
        self._write_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Borrowers
    # -------------------------------------------------------------------------

    def register_borrower(
        self,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Result[Borrower]:
        """Register a borrower.

        Fails with MISSING_NAME if ``name`` is blank, or DUPLICATE_EMAIL if
        another borrower already uses ``email`` in any letter case.
        """
        with self._write_lock:
            return self.directory.register(
                name,
                created_at=self.clock.now(),
                email=email,
                phone=phone,
                address=address,
            )

    def get_borrower(self, borrower_id: str) -> Optional[Borrower]:
        return self.directory.find_borrower_by_id(borrower_id)

    def list_borrowers(self) -> list[Borrower]:
        return self.directory.list_borrowers()

    # -------------------------------------------------------------------------
    # Loan Lifecycle
    # -------------------------------------------------------------------------

    def checkout(
        self,
        item_id: str,
        borrower_id: str,
        loan_duration_days: Optional[int] = None,
    ) -> Result[Transaction]:
        """Check an item out to a borrower.

        Args:
            item_id: Catalog item identifier
            borrower_id: Borrower ID
            loan_duration_days: Loan period (default: engine's policy value)

        Returns:
            Result holding the new active transaction, or
            BORROWER_NOT_FOUND / ITEM_ALREADY_CHECKED_OUT

        Raises:
            ValueError: If ``loan_duration_days`` is negative
        """
        loan_days = self.default_loan_days if loan_duration_days is None else loan_duration_days
        if loan_days < 0:
            raise ValueError(f"Loan period cannot be negative: {loan_days}")

        with self._write_lock:
            if self.directory.find_borrower_by_id(borrower_id) is None:
                return self._refuse("checkout", LendingError.BORROWER_NOT_FOUND, borrower_id)

            if self.ledger.find_active_for_item(item_id):
                return self._refuse("checkout", LendingError.ITEM_ALREADY_CHECKED_OUT, item_id)

            now = self.clock.now()
            due_at = due_instant(now, loan_days)

            try:
                transaction = self.ledger.append(item_id, borrower_id, now, due_at)
            except LendingOperationError as e:
                return self._refuse("checkout", e.error, item_id)

        logger.info(
            "Checked out item %s to borrower %s (transaction %s, due %s)",
            item_id, borrower_id, transaction.id, transaction.due_at.isoformat(),
        )
        return Result.success(transaction)

    def return_item(
        self,
        transaction_id: str,
        fine_amount: Optional[Money] = None,
        *,
        assess_fine: bool = False,
        daily_fine_rate: Optional[Money] = None,
    ) -> Result[Transaction]:
        """Close an active loan.

        The recorded fine is ``fine_amount`` when given, otherwise zero.
        Pass ``assess_fine=True`` instead to have the overdue fine computed
        from the same clock reading that stamps the return.

        Args:
            transaction_id: Transaction ID
            fine_amount: Fine to record, usually a prior calculate_fine()
            assess_fine: Compute the fine at return time
            daily_fine_rate: Rate used with assess_fine (default: engine's)

        Returns:
            Result holding the returned transaction, or
            TRANSACTION_NOT_FOUND / TRANSACTION_NOT_ACTIVE

        Raises:
            ValueError: If both a fine amount and assess_fine are given, a
                rate is given without assess_fine, or an amount is negative
        """
        if assess_fine and fine_amount is not None:
            raise ValueError("Pass either fine_amount or assess_fine, not both")
        if daily_fine_rate is not None and not assess_fine:
            raise ValueError("daily_fine_rate only applies with assess_fine=True")
        rate = self._rate(daily_fine_rate) if assess_fine else None

        fine = Decimal("0") if fine_amount is None else Decimal(str(fine_amount))
        if fine < 0:
            raise ValueError(f"Fine amount cannot be negative: {fine}")

        with self._write_lock:
            transaction = self.ledger.get(transaction_id)
            if transaction is None:
                return self._refuse("return", LendingError.TRANSACTION_NOT_FOUND, transaction_id)
            if not transaction.is_active:
                return self._refuse("return", LendingError.TRANSACTION_NOT_ACTIVE, transaction_id)

            # A return is never stamped before its checkout
            now = max(self.clock.now(), transaction.checkout_at)
            if assess_fine:
                fine = fine_for(transaction.due_at, now, rate)

            try:
                transaction = self.ledger.mark_returned(transaction_id, now, fine)
            except LendingOperationError as e:
                return self._refuse("return", e.error, transaction_id)

        logger.info(
            "Returned item %s (transaction %s, fine %s)",
            transaction.item_id, transaction.id, transaction.fine_amount,
        )
        return Result.success(transaction)

    # -------------------------------------------------------------------------
    # Queries and Derivations
    # -------------------------------------------------------------------------

    def calculate_fine(
        self,
        transaction_id: str,
        daily_fine_rate: Optional[Money] = None,
    ) -> Decimal:
        """Preview the fine an active loan owes right now.

        Zero when the transaction is unknown, already returned, or not yet
        past due. Otherwise each started day past the due instant costs
        one ``daily_fine_rate``. Never writes to the ledger.

        Raises:
            ValueError: If ``daily_fine_rate`` is negative, whatever the
                transaction
        """
        rate = self._rate(daily_fine_rate)
        transaction = self.ledger.get(transaction_id)
        if transaction is None or not transaction.is_active:
            return Decimal("0")
        return fine_for(transaction.due_at, self.clock.now(), rate)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.ledger.get(transaction_id)

    def get_active_transactions_for_item(self, item_id: str) -> list[Transaction]:
        """All active transactions for an item.

        Returns whatever matches; it does not assume there is at most one.
        """
        return self.ledger.find_active_for_item(item_id)

    def get_transactions_for_borrower(self, borrower_id: str) -> list[Transaction]:
        """Borrower's loan history, most recent first."""
        return self.ledger.for_borrower(borrower_id)

    def get_overdue_transactions(self, now: Optional[datetime] = None) -> list[Transaction]:
        """Active transactions due strictly before ``now`` (default: clock)."""
        now = as_utc(now) if now is not None else self.clock.now()
        return self.ledger.active(due_before=now)

    def list_active_transactions(self) -> list[Transaction]:
        return self.ledger.active()

    def list_transactions(self) -> list[Transaction]:
        """Full ledger, oldest first."""
        return self.ledger.all()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _rate(self, daily_fine_rate: Optional[Money]) -> Decimal:
        if daily_fine_rate is None:
            return self.default_daily_fine
        rate = Decimal(str(daily_fine_rate))
        if rate < 0:
            raise ValueError(f"Daily fine rate cannot be negative: {rate}")
        return rate

    @staticmethod
    def _refuse(operation: str, error: LendingError, subject: str) -> Result:
        logger.warning("%s refused for %s: %s", operation.capitalize(), subject, error.value)
        return Result.failure(error)


def build_engine(
    db: Optional[Database] = None,
    clock: Optional[Clock] = None,
) -> BorrowingEngine:
    """Create an engine wired to the SQLite ledger and the configured policy.

    Args:
        db: Database instance (default: global database)
        clock: Time source (default: system clock)
    """
    config = get_config()
    db = db or get_db()
    return BorrowingEngine(
        ledger=SqlLoanLedger(db),
        directory=BorrowerDirectory(db),
        clock=clock,
        default_loan_days=config.default_loan_days,
        default_daily_fine=config.daily_fine_rate,
    )
