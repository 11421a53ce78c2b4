"""Pytest configuration and shared fixtures.

This module provides fixtures for testing lendingdesk, including an
in-memory database, a controllable clock and a ready engine.
"""

from datetime import datetime, timezone
from typing import Generator

import pytest

from lendingdesk.borrowers import Borrower, BorrowerDirectory
from lendingdesk.clock import FixedClock
from lendingdesk.config import reset_config
from lendingdesk.db.sqlite import Database, reset_db
from lendingdesk.lending import BorrowingEngine, SqlLoanLedger
from lendingdesk.logging_config import reset_logging


START = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    reset_db()
    reset_config()

    database = Database(":memory:")
    database.create_tables()
    yield database

    database.engine.dispose()
    reset_db()
    reset_logging()


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at 2024-01-01T00:00:00Z."""
    return FixedClock(START)


@pytest.fixture
def directory(db: Database) -> BorrowerDirectory:
    return BorrowerDirectory(db)


@pytest.fixture
def ledger(db: Database) -> SqlLoanLedger:
    return SqlLoanLedger(db)


@pytest.fixture
def engine(ledger: SqlLoanLedger, directory: BorrowerDirectory, clock: FixedClock) -> BorrowingEngine:
    """Create a BorrowingEngine with test database and clock."""
    return BorrowingEngine(ledger, directory, clock=clock)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def borrower(engine: BorrowingEngine) -> Borrower:
    """Register a sample borrower."""
    return engine.register_borrower("Ada", email="ada@example.com").unwrap()


@pytest.fixture
def other_borrower(engine: BorrowingEngine) -> Borrower:
    """Register a second borrower."""
    return engine.register_borrower("Grace", email="grace@example.com").unwrap()
