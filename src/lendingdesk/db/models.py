"""SQLAlchemy declarative base shared by all lendingdesk tables.

Tables:
- borrowers: see lendingdesk.borrowers.models
- loans: see lendingdesk.lending.models
"""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from ..clock import as_utc


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def to_iso(value: datetime) -> str:
    """Serialize an instant as a fixed-width ISO-8601 UTC string.

    Fixed width keeps string comparison in SQL consistent with time order.
    """
    return as_utc(value).isoformat(timespec="microseconds")


class DecimalString(TypeDecorator):
    """Decimal stored as its exact string form.

    SQLite has no native decimal type; a ``Numeric`` column round-trips
    through float and rounds to the column scale. Text keeps every digit.
    """

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)
