"""
Session Settings

The one preference that changes while the app runs: the currency code.

DESIGN DECISION: This is NOT a global singleton.
The application root creates one SessionSettings and hands it to
whoever needs it, so there is one currency per session without
hidden module-level state.
"""

import threading
from typing import Optional

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.config.settings import get_settings
from expense_tracker.exceptions import InvalidArgumentError, NullArgumentError


logger = structlog.get_logger(__name__)


class SessionSettings:
    """
    Mutable, thread-safe session preferences.

    Reads and writes of the currency are guarded by their own lock,
    independent of any ledger lock.
    """

    def __init__(
        self,
        currency: Optional[str] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize session settings.

        Args:
            currency: Starting currency code. Defaults to the configured
                      AppSettings.default_currency.
            audit_logger: Records currency changes if given.
        """
        self._lock = threading.Lock()
        self._audit_logger = audit_logger
        self._currency = self._clean(
            currency if currency is not None else get_settings().app.default_currency
        )

    @staticmethod
    def _clean(code: str) -> str:
        if code is None:
            raise NullArgumentError("currency cannot be None")
        trimmed = code.strip()
        if not trimmed:
            raise InvalidArgumentError("currency cannot be empty")
        return trimmed.upper()

    def get_currency(self) -> str:
        """Current currency code (upper-case, e.g. "SAR")."""
        with self._lock:
            return self._currency

    def set_currency(self, code: str) -> None:
        """
        Update the currency code.

        The value is trimmed and upper-cased before it is stored.

        Raises:
            NullArgumentError: If code is None
            InvalidArgumentError: If code is empty after trimming
        """
        cleaned = self._clean(code)
        with self._lock:
            old, self._currency = self._currency, cleaned

        if old != cleaned:
            logger.info("currency_changed", old=old, new=cleaned)
            if self._audit_logger:
                self._audit_logger.log_currency_changed(old=old, new=cleaned)

    # Short aliases for callers that only deal with the currency
    get = get_currency
    set = set_currency
