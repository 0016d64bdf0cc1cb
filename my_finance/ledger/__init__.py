"""
Ledger package.

The store is exported here; operations live in my_finance.ledger.operations
(they depend on storage and audit, which themselves depend on the store).
"""

from my_finance.ledger.store import DEFAULT_EXCHANGE_RATE, LedgerStore

__all__ = ["DEFAULT_EXCHANGE_RATE", "LedgerStore"]
