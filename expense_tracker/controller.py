"""
Application Controller

Sits between a view and the ledger:
1. Turns raw input strings ("Food: 12.50") into ledger calls
2. Allocates expense ids
3. Formats amounts in the session currency

DESIGN DECISION: The controller owns id allocation, not the ledger.
An id is only consumed when the input actually parses, and after a
load the counter jumps past every id the file produced so new
entries never collide with loaded ones.
"""

import threading
from pathlib import Path
from typing import Optional, Union

from expense_tracker.audit import AuditLogger, configure_logging
from expense_tracker.config import SessionSettings, get_settings
from expense_tracker.ledger import ExpenseList
from expense_tracker.models.expense import Expense, ExpenseID
from expense_tracker.observers import ChangeNotifier, Observer


class ExpenseController:
    """
    Mediates between the view and the ledger model.
    """

    def __init__(
        self,
        model: ExpenseList,
        session: Optional[SessionSettings] = None,
    ):
        self._model = model
        self._session = session or SessionSettings()
        self._next_id = 1
        self._id_lock = threading.Lock()

    @property
    def model(self) -> ExpenseList:
        return self._model

    @property
    def session(self) -> SessionSettings:
        return self._session

    def _reserve_id(self) -> int:
        with self._id_lock:
            value = self._next_id
            self._next_id += 1
            return value

    def _release_id(self, value: int) -> None:
        # Only the most recent reservation can be handed back
        with self._id_lock:
            if self._next_id == value + 1:
                self._next_id = value

    def _sync_ids(self) -> None:
        highest = max((e.id.value for e in self._model.get_expenses()), default=0)
        with self._id_lock:
            self._next_id = max(self._next_id, highest + 1)

    # =========================================================================
    # Input handling
    # =========================================================================

    def add_expense_from_input(self, text: Optional[str]) -> bool:
        """
        Parse "category:amount" and add it to the ledger.

        Returns False (and consumes no id) if the text does not parse.
        """
        value = self._reserve_id()
        expense = self._model.parse_expense(text, ExpenseID(value))
        if expense is None:
            self._release_id(value)
            return False
        self._model.add_expense(expense)
        return True

    def edit_expense(self, target: Optional[Expense], text: Optional[str]) -> bool:
        """Re-parse text for an existing aggregate and apply it."""
        if target is None:
            return False
        parsed = self._model.parse_expense(text, target.id)
        if parsed is None:
            return False
        return self._model.update_expense(target.id, parsed.category, parsed.amount)

    def delete_expense(self, expense: Optional[Expense]) -> None:
        if expense is not None:
            self._model.remove_expense(expense)

    # =========================================================================
    # Views
    # =========================================================================

    def get_all_expenses(self) -> tuple[Expense, ...]:
        return self._model.get_expenses()

    def get_total(self) -> float:
        return self._model.get_total()

    def search_expenses(self, pattern: Optional[str]) -> tuple[Expense, ...]:
        """Search by regex on category."""
        return self._model.search_by_regex(pattern)

    def format_amount(self, amount: float) -> str:
        """e.g. "12.50 SAR"."""
        return f"{amount:.2f} {self._session.get_currency()}"

    def add_observer(self, observer: Observer) -> None:
        self._model.add_observer(observer)

    def remove_observer(self, observer: Optional[Observer]) -> None:
        self._model.remove_observer(observer)

    # =========================================================================
    # Persistence
    # =========================================================================

    def save_data(self) -> bool:
        return self._model.save_to_default_file()

    def load_data(self) -> bool:
        loaded = self._model.load_from_default_file()
        if loaded:
            self._sync_ids()
        return loaded

    def save_to(self, path: Union[str, Path]) -> bool:
        return self._model.save_to_file(path)

    def load_from(self, path: Union[str, Path]) -> bool:
        loaded = self._model.load_from_file(path)
        if loaded:
            self._sync_ids()
        return loaded


def create_app_components(
    data_file: Optional[Union[str, Path]] = None,
) -> ExpenseController:
    """
    Factory function to create all application components.

    Args:
        data_file: Override for the default data file.

    Returns:
        A controller wired to a fresh ledger and session settings.
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger(history_size=app_settings.audit_history_size)
    session = SessionSettings(
        currency=app_settings.default_currency,
        audit_logger=audit_logger,
    )
    model = ExpenseList(
        data_file=data_file,
        audit_logger=audit_logger,
        notifier=ChangeNotifier(audit_logger),
    )
    return ExpenseController(model, session)
