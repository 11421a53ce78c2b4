"""Due date and fine arithmetic.

Pure functions over instants; nothing here reads the clock or the ledger.
"""

from datetime import datetime, timedelta
from decimal import Decimal

ONE_DAY = timedelta(days=1)


def due_instant(checkout_at: datetime, loan_days: int) -> datetime:
    """Return the instant a loan started at ``checkout_at`` falls due.

    Raises:
        ValueError: If ``loan_days`` is negative
    """
    if loan_days < 0:
        raise ValueError(f"Loan period cannot be negative: {loan_days}")
    return checkout_at + timedelta(days=loan_days)


def days_overdue(due_at: datetime, now: datetime) -> int:
    """Count overdue days, rounding any partial day up.

    Example:
        >>> from datetime import timezone
        >>> due = datetime(2024, 1, 15, tzinfo=timezone.utc)
        >>> days_overdue(due, due + timedelta(hours=1))
        1
        >>> days_overdue(due, due)
        0
    """
    if now <= due_at:
        return 0
    # Ceiling division on exact timedeltas, no float rounding
    return -(-(now - due_at) // ONE_DAY)


def fine_for(due_at: datetime, now: datetime, daily_rate: Decimal) -> Decimal:
    """Fine owed at ``now`` for a loan due at ``due_at``.

    Raises:
        ValueError: If ``daily_rate`` is negative
    """
    daily_rate = Decimal(str(daily_rate))
    if daily_rate < 0:
        raise ValueError(f"Daily fine rate cannot be negative: {daily_rate}")
    return days_overdue(due_at, now) * daily_rate
