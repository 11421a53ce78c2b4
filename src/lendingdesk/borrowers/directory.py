"""Borrower directory: registration and lookup of borrowers."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..db.models import to_iso
from ..db.sqlite import Database
from ..results import LendingError, Result
from .models import BorrowerRow, email_key
from .schemas import Borrower

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field; blank values become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class BorrowerDirectory:
    """Owns borrower records. The lending engine only reads from it."""

    def __init__(self, db: Database):
        """Initialize borrower directory.

        Args:
            db: Database instance
        """
        self.db = db

    def register(
        self,
        name: str,
        created_at: datetime,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> Result[Borrower]:
        """Register a new borrower.

        Args:
            name: Display name, required after trimming
            created_at: Registration instant
            email: Contact email, unique across borrowers ignoring case
            phone: Phone number
            address: Postal address

        Returns:
            Result holding the new borrower, or MISSING_NAME / DUPLICATE_EMAIL
        """
        name = _clean(name)
        email = _clean(email)

        if not name:
            logger.warning("Registration refused: %s", LendingError.MISSING_NAME.value)
            return Result.failure(LendingError.MISSING_NAME)

        if email and self.exists_by_email(email):
            logger.warning("Registration refused: %s (%s)", LendingError.DUPLICATE_EMAIL.value, email)
            return Result.failure(LendingError.DUPLICATE_EMAIL)

        try:
            with self.db.get_session() as session:
                row = BorrowerRow(
                    name=name,
                    email=email,
                    phone=_clean(phone),
                    address=_clean(address),
                    created_at=to_iso(created_at),
                )
                session.add(row)
                session.flush()
                borrower = Borrower.model_validate(row)
        except IntegrityError:
            # Another writer registered the same email between check and insert
            logger.warning("Registration refused: %s (%s)", LendingError.DUPLICATE_EMAIL.value, email)
            return Result.failure(LendingError.DUPLICATE_EMAIL)

        logger.info("Registered borrower %s (%s)", borrower.id, borrower.name)
        return Result.success(borrower)

    def find_borrower_by_id(self, borrower_id: str) -> Optional[Borrower]:
        """Get a borrower by ID.

        Args:
            borrower_id: Borrower ID

        Returns:
            Borrower or None
        """
        with self.db.get_session() as session:
            row = session.get(BorrowerRow, borrower_id)
            return Borrower.model_validate(row) if row else None

    def exists_by_email(self, email: str) -> bool:
        """Check whether any borrower already uses ``email``, ignoring case."""
        key = email_key(email)
        if not key:
            return False
        with self.db.get_session() as session:
            stmt = select(func.count()).select_from(BorrowerRow).where(BorrowerRow.email_key == key)
            return (session.execute(stmt).scalar() or 0) > 0

    def list_borrowers(self) -> list[Borrower]:
        """List all borrowers in registration order."""
        with self.db.get_session() as session:
            stmt = select(BorrowerRow).order_by(BorrowerRow.created_at, BorrowerRow.name)
            rows = session.execute(stmt).scalars().all()
            return [Borrower.model_validate(row) for row in rows]
