"""Pydantic schemas for borrowers."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Borrower(BaseModel):
    """A registered borrower as seen outside the directory."""

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True, "frozen": True}
