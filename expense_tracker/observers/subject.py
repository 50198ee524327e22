"""
Change Notification Channel

A small publish/subscribe registry. The ledger owns one and calls
notify_all() after every mutation; views subscribe a zero-argument
callback and re-read the ledger when it fires.

Delivery rules:
- Subscribers are called in subscription order
- The subscriber list is snapshotted under the channel lock, and
  callbacks run with NO lock held, so a callback may re-enter the
  ledger or (un)subscribe without affecting the current round
- A failing callback is logged and skipped; it never reaches the
  ledger operation that triggered the notification
"""

import threading
from typing import Callable, Optional

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.exceptions import InvalidArgumentError, NullArgumentError


logger = structlog.get_logger(__name__)

Observer = Callable[[], None]


def _describe(callback: Observer) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class ChangeNotifier:
    """
    Thread-safe subscriber registry.

    The notifier does not own its subscribers; it only holds references.
    """

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self._subscribers: list[Observer] = []
        self._lock = threading.Lock()
        self._audit_logger = audit_logger

    def subscribe(self, callback: Observer) -> None:
        """
        Register a callback. Subscribing the same callback twice is a no-op.

        Raises:
            NullArgumentError: If callback is None
            InvalidArgumentError: If callback is not callable
        """
        if callback is None:
            raise NullArgumentError("observer cannot be None")
        if not callable(callback):
            raise InvalidArgumentError("observer must be callable")
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Optional[Observer]) -> None:
        """Deregister a callback. Unknown callbacks are ignored."""
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def notify_all(self) -> None:
        """Invoke every subscriber once, outside of any lock."""
        with self._lock:
            snapshot = list(self._subscribers)

        for callback in snapshot:
            try:
                callback()
            except Exception as e:
                logger.exception("observer_failed", observer=_describe(callback))
                if self._audit_logger:
                    self._audit_logger.log_observer_failed(
                        observer=_describe(callback),
                        error_message=str(e),
                    )
