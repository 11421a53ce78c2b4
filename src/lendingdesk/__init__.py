"""Lending desk: borrower registration, checkouts, returns and fines."""

__version__ = "0.1.0"
