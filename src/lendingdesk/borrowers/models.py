"""SQLAlchemy model for borrowers.

Tables:
- borrowers: People who may check items out
"""

from typing import Optional

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..db.models import Base, generate_uuid


def email_key(email: Optional[str]) -> Optional[str]:
    """Case-folded form of an email, used for uniqueness and lookup."""
    if email is None:
        return None
    return email.strip().casefold() or None


class BorrowerRow(Base):
    """Borrower model - the directory entry a loan points at."""

    __tablename__ = "borrowers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(200))
    # Maintained from email; SQLite lower() folds ASCII only
    email_key: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)

    # ISO-8601 UTC instant
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)

    __table_args__ = (
        # NULL keys never collide, so borrowers without an email are unconstrained
        Index("uq_borrowers_email_key", "email_key", unique=True),
    )

    @validates("email")
    def _sync_email_key(self, key: str, value: Optional[str]) -> Optional[str]:
        self.email_key = email_key(value)
        return value

    def __repr__(self) -> str:
        return f"<BorrowerRow(id={self.id}, name='{self.name}')>"
