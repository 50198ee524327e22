"""
Expense Tracker - Source Package

The model layer of a single-user desktop expense tracker.
Expenses are aggregated by category, searched by regex,
persisted to a flat CSV file and shown in a session currency.

DESIGN PRINCIPLES:
1. One aggregate per category (case and whitespace insensitive)
2. Validation errors are loud, expected failures are return values
3. Every mutation notifies observers
4. Every significant action is auditable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
