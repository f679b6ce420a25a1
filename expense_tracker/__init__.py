"""
Expense Tracker - Source Package

A small personal ledger: record dated expenses, see spend against a
monthly budget, and exchange records with spreadsheets through a quoted
text format.

DESIGN PRINCIPLES:
1. Pure functions for every calculation (summaries, views, budget status)
2. Whole-snapshot persistence: load, transform, save
3. Bad stored or imported data is dropped, never fatal
4. Caller input is rejected with a reason, never silently corrected
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
