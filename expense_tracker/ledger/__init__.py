"""Ledger package."""

from expense_tracker.ledger.expense_list import PARSE_PATTERN, ExpenseList

__all__ = ["ExpenseList", "PARSE_PATTERN"]
