"""SQLAlchemy model for the loan ledger.

Tables:
- loans: One row per checkout-to-return cycle of one item
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, DecimalString, generate_uuid
from .schemas import TransactionStatus


class LoanRow(Base):
    """Loan transaction model."""

    __tablename__ = "loans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Catalog item; owned by the catalog, not by this table
    item_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    borrower_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("borrowers.id"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.ACTIVE.value, index=True
    )

    # Instants, ISO-8601 UTC
    checkout_at: Mapped[str] = mapped_column(String(32), nullable=False)
    due_at: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    return_at: Mapped[Optional[str]] = mapped_column(String(32))
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)

    # Exact decimal text, never rounded
    fine_amount: Mapped[Decimal] = mapped_column(
        DecimalString, nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        # At most one active loan per item
        Index(
            "uq_loans_active_item",
            "item_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<LoanRow(id={self.id}, item_id={self.item_id}, status={self.status})>"
