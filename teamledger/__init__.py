"""Team Ledger - business, cashbook and invite membership service."""

__version__ = "1.0.0"
