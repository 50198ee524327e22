"""
Error taxonomy for the expense model.

DESIGN DECISION: Only programmer-facing misuse is raised.
Expected outcomes (update target not found, unparseable input,
unreadable file) are returned as False / None / empty results
so the UI layer can branch without exception handling.

These classes deliberately do not derive from ValueError:
pydantic wraps ValueError raised inside validators into a
ValidationError, and we want callers to see our own types.
"""


class ExpenseTrackerError(Exception):
    """Base exception for the expense model."""
    pass


class NullArgumentError(ExpenseTrackerError):
    """A required argument was None."""
    pass


class InvalidArgumentError(ExpenseTrackerError):
    """An argument was present but semantically invalid."""
    pass
