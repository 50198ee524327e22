"""
Data Models Package

Pydantic models used throughout the expense tracker.
"""

from expense_tracker.models.expense import (
    Expense,
    ExpenseID,
    normalize_category,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "Expense",
    "ExpenseID",
    "normalize_category",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
