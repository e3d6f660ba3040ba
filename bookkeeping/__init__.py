"""
Bookkeeping - Ledger Core Package

A personal bookkeeping core: record income and expense transactions,
browse them grouped by date and month, and view totals.

DESIGN PRINCIPLES:
1. One local store, one key, one serialized collection
2. Never crash the ledger view on bad stored data
3. Every repository load re-reads the store; views refresh explicitly
4. Views are derived by pure functions
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Bookkeeping Team"
