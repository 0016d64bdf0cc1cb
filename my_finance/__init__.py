"""
My Finance - Source Package

A personal finance tracker for one household: salary log, card account,
cash in EUR and RSD, term deposits, budgets and savings goals.

DESIGN PRINCIPLES:
1. All money is Decimal, never float
2. The ledger is an explicit object, never global state
3. Calculations are pure functions of the ledger
4. No failure is fatal - every error degrades to a safe default
5. Storage and rate sources are swappable
"""

__version__ = "1.0.0"
__author__ = "My Finance Team"
