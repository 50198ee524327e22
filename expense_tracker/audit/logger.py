"""
Audit Logger

DESIGN DECISION: Every significant ledger action is logged.
This provides:
1. Traceability of every aggregate amount
2. Debugging capability for failed saves and loads
3. A recent-history view the UI can show

The audit logger:
- Is synchronous (the ledger is synchronous)
- Keeps a bounded in-memory history, newest events win
- Writes every event through structlog at the event's severity
"""

import logging
import threading
from collections import deque
from typing import Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route package logs to stderr at the given level.

    Call once from the application root. Library code only calls
    structlog.get_logger().
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=numeric)
    logging.getLogger("expense_tracker").setLevel(numeric)


DEFAULT_HISTORY_SIZE = 500


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An in-memory history (for the UI and for tests)
    """

    def __init__(self, history_size: Optional[int] = None):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to retain.
                          Defaults to DEFAULT_HISTORY_SIZE.
        """
        self._history: deque[AuditEvent] = deque(
            maxlen=history_size or DEFAULT_HISTORY_SIZE
        )
        self._lock = threading.Lock()
        self._logger = structlog.get_logger("expense_tracker.audit")

    def log(self, event: AuditEvent) -> None:
        """
        Log an audit event.

        Always logs locally and records the event in history.
        """
        with self._lock:
            self._history.append(event)

        log_dict = event.to_log_dict()

        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def recent_events(self, limit: Optional[int] = None) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).

        Args:
            limit: Maximum number of events to return
        """
        with self._lock:
            events = list(reversed(self._history))
        return events if limit is None else events[:limit]

    def clear(self) -> None:
        """Forget the in-memory history."""
        with self._lock:
            self._history.clear()

    def log_expense_added(self, expense_id: int, category: str, amount: float) -> None:
        """Log a new aggregate."""
        self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            category=category,
            amount=amount,
        ))

    def log_expense_merged(
        self,
        expense_id: int,
        category: str,
        added: float,
        new_amount: float,
    ) -> None:
        """Log an amount merged into an existing aggregate."""
        self.log(AuditEventBuilder.expense_merged(
            expense_id=expense_id,
            category=category,
            added=added,
            new_amount=new_amount,
        ))

    def log_expense_removed(
        self,
        category: str,
        removed: bool,
        expense_id: Optional[int] = None,
    ) -> None:
        """Log a removal (or a vacuous one)."""
        self.log(AuditEventBuilder.expense_removed(
            category=category,
            removed=removed,
            expense_id=expense_id,
        ))

    def log_expense_updated(
        self,
        expense_id: int,
        old_category: str,
        new_category: str,
        new_amount: float,
        merged_into: Optional[int] = None,
    ) -> None:
        """Log an update, noting the surviving aggregate if it merged."""
        self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            old_category=old_category,
            new_category=new_category,
            new_amount=new_amount,
            merged_into=merged_into,
        ))

    def log_ledger_saved(self, path: str, row_count: int) -> None:
        self.log(AuditEventBuilder.ledger_saved(path=path, row_count=row_count))

    def log_ledger_loaded(self, path: str, row_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(path=path, row_count=row_count))

    def log_save_failed(self, path: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(path=path, error_message=error_message))

    def log_load_failed(self, path: str, error_message: str) -> None:
        self.log(AuditEventBuilder.load_failed(path=path, error_message=error_message))

    def log_observer_failed(self, observer: str, error_message: str) -> None:
        self.log(AuditEventBuilder.observer_failed(
            observer=observer,
            error_message=error_message,
        ))

    def log_currency_changed(self, old: str, new: str) -> None:
        self.log(AuditEventBuilder.currency_changed(old=old, new=new))
