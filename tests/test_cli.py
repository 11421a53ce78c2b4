"""Tests for the CLI interface."""

import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from lendingdesk.cli import app
from lendingdesk.clock import FixedClock
from lendingdesk.config import reset_config
from lendingdesk.db.sqlite import get_db, reset_db
from lendingdesk.lending import build_engine
from lendingdesk.logging_config import reset_logging


@pytest.fixture(autouse=True)
def setup_test_db():
    """Set up a test database for each test."""
    reset_db()
    reset_config()

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    os.environ["LENDINGDESK_DB_PATH"] = db_path

    yield

    # Cleanup
    reset_db()
    reset_config()
    reset_logging()
    if "LENDINGDESK_DB_PATH" in os.environ:
        del os.environ["LENDINGDESK_DB_PATH"]
    if Path(db_path).exists():
        Path(db_path).unlink()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def register(runner: CliRunner, name: str, *args: str) -> str:
    """Register a borrower through the CLI and return its ID."""
    result = runner.invoke(app, ["register", name, *args])
    assert result.exit_code == 0, result.stdout
    match = re.search(r"Borrower ID: (\S+)", result.stdout)
    assert match
    return match.group(1)


def checkout(runner: CliRunner, item_id: str, borrower_id: str, *args: str) -> str:
    """Check an item out through the CLI and return the transaction ID."""
    result = runner.invoke(app, ["checkout", item_id, borrower_id, *args])
    assert result.exit_code == 0, result.stdout
    match = re.search(r"Transaction ID: (\S+)", result.stdout)
    assert match
    return match.group(1)


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Lend items to borrowers" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_invalid_config(self, runner: CliRunner):
        """Test a bad configuration stops the command."""
        os.environ["LENDINGDESK_LOAN_DAYS"] = "-3"
        try:
            result = runner.invoke(app, ["version"])
        finally:
            del os.environ["LENDINGDESK_LOAN_DAYS"]
        assert result.exit_code == 1
        assert "Loan period cannot be negative" in result.stdout


class TestBorrowerCommands:
    """Tests for register, borrowers and history."""

    def test_register(self, runner: CliRunner):
        result = runner.invoke(app, ["register", "Ada", "--email", "ada@example.com"])
        assert result.exit_code == 0
        assert "Registered Ada" in result.stdout

    def test_register_duplicate_email(self, runner: CliRunner):
        register(runner, "Ada", "--email", "ada@example.com")

        result = runner.invoke(app, ["register", "Other", "--email", "ADA@example.com"])
        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_register_blank_name(self, runner: CliRunner):
        result = runner.invoke(app, ["register", "   "])
        assert result.exit_code == 1
        assert "name is required" in result.stdout

    def test_borrowers_empty(self, runner: CliRunner):
        result = runner.invoke(app, ["borrowers"])
        assert result.exit_code == 0
        assert "No borrowers registered" in result.stdout

    def test_borrowers_list(self, runner: CliRunner):
        register(runner, "Ada")
        register(runner, "Grace")

        result = runner.invoke(app, ["borrowers"])
        assert result.exit_code == 0
        assert "Ada" in result.stdout
        assert "Grace" in result.stdout

    def test_history(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["history", borrower_id])
        assert result.exit_code == 0
        assert "ITEM1" in result.stdout

    def test_history_unknown_borrower(self, runner: CliRunner):
        result = runner.invoke(app, ["history", "nobody"])
        assert result.exit_code == 1
        assert "Borrower not found" in result.stdout


class TestLoanCommands:
    """Tests for checkout, return, fine and the ledger views."""

    def test_checkout(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")

        result = runner.invoke(app, ["checkout", "ITEM1", borrower_id, "--days", "7"])
        assert result.exit_code == 0
        assert "Item ITEM1 checked out" in result.stdout
        assert "Due:" in result.stdout

    def test_checkout_twice(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["checkout", "ITEM1", borrower_id])
        assert result.exit_code == 1
        assert "already checked out" in result.stdout

    def test_checkout_unknown_borrower(self, runner: CliRunner):
        result = runner.invoke(app, ["checkout", "ITEM1", "nobody"])
        assert result.exit_code == 1
        assert "Borrower not found" in result.stdout

    def test_return_with_fine(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["return", tx_id, "--fine", "1.5"])
        assert result.exit_code == 0
        assert "Item ITEM1 returned" in result.stdout
        assert "Fine recorded: 1.50" in result.stdout

        engine = build_engine(get_db())
        assert str(engine.get_transaction(tx_id).fine_amount) == "1.50"

    def test_return_by_id_prefix(self, runner: CliRunner):
        """Test the short IDs shown in tables are accepted."""
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["return", tx_id[:8]])
        assert result.exit_code == 0
        assert "Item ITEM1 returned" in result.stdout

    def test_return_twice(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)
        runner.invoke(app, ["return", tx_id])

        result = runner.invoke(app, ["return", tx_id])
        assert result.exit_code == 1
        assert "not currently checked out" in result.stdout

    def test_return_rejects_bad_fine(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["return", tx_id, "--fine", "-2"])
        assert result.exit_code == 2

    def test_return_assess(self, runner: CliRunner):
        engine = build_engine(get_db(), clock=FixedClock(datetime(2024, 1, 1, tzinfo=timezone.utc)))
        borrower = engine.register_borrower("Ada").unwrap()
        tx = engine.checkout("ITEM1", borrower.id, 1).unwrap()

        result = runner.invoke(app, ["return", tx.id, "--assess", "--rate", "0"])
        assert result.exit_code == 0
        assert "Item ITEM1 returned" in result.stdout

    def test_return_rate_requires_assess(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["return", tx_id, "--rate", "1.00"])
        assert result.exit_code == 1
        assert "--rate only applies with --assess" in result.stdout

    def test_fine_preview(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["fine", tx_id])
        assert result.exit_code == 0
        assert "Fine: 0.00" in result.stdout

    def test_overdue_none(self, runner: CliRunner):
        result = runner.invoke(app, ["overdue"])
        assert result.exit_code == 0
        assert "No overdue loans" in result.stdout

    def test_overdue(self, runner: CliRunner):
        engine = build_engine(get_db(), clock=FixedClock(datetime(2024, 1, 1, tzinfo=timezone.utc)))
        borrower = engine.register_borrower("Ada").unwrap()
        engine.checkout("ITEM1", borrower.id, 1).unwrap()
        engine.checkout("ITEM2", borrower.id, 36500).unwrap()

        result = runner.invoke(app, ["overdue"])
        assert result.exit_code == 0
        assert "Overdue Loans: 1" in result.stdout
        assert "ITEM1" in result.stdout
        assert "ITEM2" not in result.stdout

    def test_item_available(self, runner: CliRunner):
        result = runner.invoke(app, ["item", "ITEM1"])
        assert result.exit_code == 0
        assert "available" in result.stdout

    def test_item_checked_out(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        checkout(runner, "ITEM1", borrower_id)

        result = runner.invoke(app, ["item", "ITEM1"])
        assert result.exit_code == 0
        assert "checked out" in result.stdout

    def test_ledger(self, runner: CliRunner):
        borrower_id = register(runner, "Ada")
        tx_id = checkout(runner, "ITEM1", borrower_id)
        checkout(runner, "ITEM2", borrower_id)
        runner.invoke(app, ["return", tx_id])

        result = runner.invoke(app, ["ledger"])
        assert result.exit_code == 0
        assert "ITEM1" in result.stdout
        assert "ITEM2" in result.stdout

        result = runner.invoke(app, ["ledger", "--active"])
        assert "ITEM1" not in result.stdout
        assert "ITEM2" in result.stdout

    def test_ledger_empty(self, runner: CliRunner):
        result = runner.invoke(app, ["ledger"])
        assert result.exit_code == 0
        assert "No loans found" in result.stdout
