"""Item lending module.

Provides functionality for:
- Checking items out and returning them
- One active loan per item
- Due date and overdue tracking
- Fine calculation
"""

from .engine import BorrowingEngine, build_engine
from .ledger import LoanLedger, SqlLoanLedger
from .models import LoanRow
from .schemas import Transaction, TransactionStatus

__all__ = [
    "BorrowingEngine",
    "build_engine",
    "LoanLedger",
    "SqlLoanLedger",
    "LoanRow",
    "Transaction",
    "TransactionStatus",
]
