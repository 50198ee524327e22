"""
Audit Models for the Expense Tracker

Every significant ledger action produces an audit event.
This provides:
1. Traceability of how each aggregate reached its amount
2. Debugging information when a save or load fails
3. Visibility into misbehaving observers

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    One per ledger mutation kind, plus persistence and notification outcomes.
    """
    # Ledger mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_MERGED = "expense_merged"
    EXPENSE_REMOVED = "expense_removed"
    EXPENSE_UPDATED = "expense_updated"

    # Persistence
    LEDGER_SAVED = "ledger_saved"
    LEDGER_LOADED = "ledger_loaded"
    SAVE_FAILED = "save_failed"
    LOAD_FAILED = "load_failed"

    # Notification
    OBSERVER_FAILED = "observer_failed"

    # Settings
    CURRENCY_CHANGED = "currency_changed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which expense is this about?
    expense_id: Optional[int] = Field(
        default=None,
        description="Numeric ExpenseID the event relates to, if any"
    )
    category: Optional[str] = Field(
        default=None,
        description="Category the event relates to, if any"
    )

    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "expense_id": self.expense_id,
            "category": self.category,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id=3, category="Food", amount=12.5)
        event = AuditEventBuilder.load_failed(path="/tmp/x.csv", error_message="...")
    """

    @staticmethod
    def expense_added(
        expense_id: int,
        category: str,
        amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            expense_id=expense_id,
            category=category,
            description=f"Expense added: {category} - {amount:.2f}",
            details={"amount": amount},
        )

    @staticmethod
    def expense_merged(
        expense_id: int,
        category: str,
        added: float,
        new_amount: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_MERGED,
            expense_id=expense_id,
            category=category,
            description=f"Merged {added:.2f} into {category}",
            details={
                "added": added,
                "new_amount": new_amount,
            },
        )

    @staticmethod
    def expense_removed(
        category: str,
        removed: bool,
        expense_id: Optional[int] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REMOVED,
            severity=AuditSeverity.INFO if removed else AuditSeverity.DEBUG,
            expense_id=expense_id,
            category=category,
            description=(
                f"Expense removed: {category}"
                if removed
                else f"Nothing to remove for category: {category}"
            ),
            details={"removed": removed},
        )

    @staticmethod
    def expense_updated(
        expense_id: int,
        old_category: str,
        new_category: str,
        new_amount: float,
        merged_into: Optional[int] = None,
    ) -> AuditEvent:
        if merged_into is not None:
            description = f"Expense {expense_id} moved into existing {new_category}"
        else:
            description = f"Expense {expense_id} updated: {new_category} - {new_amount:.2f}"
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            expense_id=expense_id,
            category=new_category,
            description=description,
            details={
                "old_category": old_category,
                "new_amount": new_amount,
                "merged_into": merged_into,
            },
        )

    @staticmethod
    def ledger_saved(path: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            description=f"Saved {row_count} expenses",
            details={"path": path, "row_count": row_count},
        )

    @staticmethod
    def ledger_loaded(path: str, row_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            description=f"Loaded {row_count} expenses",
            details={"path": path, "row_count": row_count},
        )

    @staticmethod
    def save_failed(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            description="Saving expenses failed",
            error_message=error_message,
            details={"path": path},
        )

    @staticmethod
    def load_failed(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description="Loading expenses failed",
            error_message=error_message,
            details={"path": path},
        )

    @staticmethod
    def observer_failed(observer: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OBSERVER_FAILED,
            severity=AuditSeverity.WARNING,
            description=f"Observer raised during notification: {observer}",
            error_message=error_message,
            details={"observer": observer},
        )

    @staticmethod
    def currency_changed(old: str, new: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_CHANGED,
            description=f"Currency changed from {old} to {new}",
            details={"old": old, "new": new},
        )
