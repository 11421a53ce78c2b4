"""Configuration management for lendingdesk.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

DEFAULT_DB_PATH = str(Path.home() / ".lendingdesk" / "lending.db")
DEFAULT_LOAN_DAYS = 14
DEFAULT_DAILY_FINE = Decimal("0.50")
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Loan policy
    default_loan_days: int
    daily_fine_rate: Decimal

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get("LENDINGDESK_DB_PATH", DEFAULT_DB_PATH)
        db_path = Path(db_path_str).expanduser() if db_path_str != ":memory:" else Path(db_path_str)

        loan_days = int(os.environ.get("LENDINGDESK_LOAN_DAYS", str(DEFAULT_LOAN_DAYS)))

        fine_str = os.environ.get("LENDINGDESK_DAILY_FINE", str(DEFAULT_DAILY_FINE))
        try:
            daily_fine = Decimal(fine_str)
        except InvalidOperation:
            raise ValueError(f"LENDINGDESK_DAILY_FINE is not a number: {fine_str!r}")

        return cls(
            db_path=db_path,
            default_loan_days=loan_days,
            daily_fine_rate=daily_fine,
            log_level=os.environ.get("LENDINGDESK_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    @property
    def is_memory_db(self) -> bool:
        """Check if the database lives only in memory."""
        return str(self.db_path) == ":memory:"

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.default_loan_days < 0:
            errors.append(f"Loan period cannot be negative: {self.default_loan_days}")

        if self.daily_fine_rate < 0:
            errors.append(f"Daily fine rate cannot be negative: {self.daily_fine_rate}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        # Check database directory is writable
        if not self.is_memory_db and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
