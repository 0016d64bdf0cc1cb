"""Input validation package."""

from my_finance.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
