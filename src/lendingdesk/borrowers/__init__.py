"""Borrower directory module.

Provides functionality for:
- Registering borrowers with unique contact emails
- Looking borrowers up by identifier or email
"""

from .directory import BorrowerDirectory
from .models import BorrowerRow
from .schemas import Borrower

__all__ = [
    "BorrowerDirectory",
    "BorrowerRow",
    "Borrower",
]
