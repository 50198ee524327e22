"""
Expense Ledger

The category-aggregated collection of expenses.

Every category (compared trimmed and case-insensitively) maps to ONE
aggregate Expense holding the summed amount for that category.
Adding an expense to a known category merges the amount into the
existing aggregate, which keeps its own id and spelling.

Invariants:
- at most one aggregate per normalized category key
- every amount >= 0
- first-seen insertion order is the iteration order

GUARANTEES:
- All reads and writes of the aggregate map happen under one lock
- Observers are notified AFTER the lock is released, so they may
  call back into the ledger
- Expected failures (update target missing, unparseable input,
  unreadable file) are return values, never exceptions
"""

import math
import re
import threading
from pathlib import Path
from typing import Optional, Union

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.config import get_settings
from expense_tracker.exceptions import InvalidArgumentError, NullArgumentError
from expense_tracker.models.expense import Expense, ExpenseID, normalize_category
from expense_tracker.observers import ChangeNotifier, Observer
from expense_tracker.storage import (
    CsvFileStorage,
    LedgerStorageInterface,
    Row,
    StorageError,
    StorageNotFoundError,
)


logger = structlog.get_logger(__name__)

# "Food : 12.50" -> ("Food", "12.50"); matched against the whole input
PARSE_PATTERN = re.compile(r"\s*([^:]+?)\s*:\s*([-+]?[0-9]*\.?[0-9]+)\s*")

PathLike = Union[str, Path]


class ExpenseList:
    """
    Thread-safe ledger of category aggregates.

    Usage:
        ledger = ExpenseList()
        expense = ledger.parse_expense("Food: 12.50", ExpenseID(1))
        ledger.add_expense(expense)
        ledger.get_total()  # 12.5
    """

    def __init__(
        self,
        data_file: Optional[PathLike] = None,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        """
        Initialize an empty ledger.

        Args:
            data_file: File used by the *_default_file methods.
                       Defaults to StorageSettings.data_file.
            audit_logger: Audit trail. A local-only logger is created if None.
            notifier: Change channel. A fresh one is created if None.
        """
        self._expenses: dict[str, Expense] = {}
        self._lock = threading.Lock()
        self._audit_logger = audit_logger or AuditLogger()
        self._notifier = notifier or ChangeNotifier(self._audit_logger)
        self._data_file = (
            Path(data_file) if data_file is not None
            else get_settings().storage.data_file
        )

    @property
    def data_file(self) -> Path:
        return self._data_file

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    def __len__(self) -> int:
        with self._lock:
            return len(self._expenses)

    # =========================================================================
    # Mutators
    # =========================================================================

    def add_expense(self, expense: Expense) -> None:
        """
        Add an expense, merging it into an existing aggregate if the
        category is already known.

        On merge the existing aggregate's id and category spelling are
        kept and the incoming expense's id is discarded.

        Raises:
            NullArgumentError: If expense is None
        """
        if expense is None:
            raise NullArgumentError("expense cannot be None")

        key = expense.key
        with self._lock:
            existing = self._expenses.get(key)
            if existing is not None:
                stored = existing.with_added_amount(expense.amount)
            else:
                stored = expense
            self._expenses[key] = stored

        if existing is not None:
            self._audit_logger.log_expense_merged(
                expense_id=stored.id.value,
                category=stored.category,
                added=expense.amount,
                new_amount=stored.amount,
            )
        else:
            self._audit_logger.log_expense_added(
                expense_id=stored.id.value,
                category=stored.category,
                amount=stored.amount,
            )

        self.notify_observers()

    def remove_expense(self, expense: Optional[Expense]) -> None:
        """
        Remove the aggregate for the expense's category.

        None and unknown categories are no-ops. Observers are notified
        either way.
        """
        if expense is not None:
            with self._lock:
                removed = self._expenses.pop(expense.key, None)

            self._audit_logger.log_expense_removed(
                category=expense.category,
                removed=removed is not None,
                expense_id=removed.id.value if removed is not None else None,
            )

        self.notify_observers()

    def update_expense(
        self,
        expense_id: ExpenseID,
        new_category: str,
        new_amount: float,
    ) -> bool:
        """
        Move/re-price the aggregate with the given id.

        If new_category collides with another aggregate, new_amount is
        added to that aggregate and ITS id survives; the moved id is
        dropped. Otherwise the aggregate is re-inserted (at the end of
        the ordering) with its original id.

        Returns:
            True if an aggregate with expense_id existed and was updated.
            False otherwise (observers are not notified).

        Raises:
            NullArgumentError: If expense_id or new_category is None
            InvalidArgumentError: If new_category is empty, new_amount is
                negative or not finite, or the merged total overflows.
                The ledger is left unchanged.
        """
        if expense_id is None:
            raise NullArgumentError("id cannot be None")
        if new_category is None:
            raise NullArgumentError("new_category cannot be None")
        if not new_category.strip():
            raise InvalidArgumentError("new_category cannot be empty")
        if new_amount is None:
            raise NullArgumentError("new_amount cannot be None")
        if not math.isfinite(new_amount) or new_amount < 0:
            raise InvalidArgumentError("new_amount must be a finite number >= 0")

        new_key = normalize_category(new_category)
        with self._lock:
            found_key = next(
                (key for key, e in self._expenses.items() if e.id == expense_id),
                None,
            )
            if found_key is None:
                return False

            found = self._expenses[found_key]
            target = self._expenses.get(new_key) if new_key != found_key else None
            if target is not None:
                updated = target.with_added_amount(new_amount)
            else:
                updated = found.with_category_and_amount(new_category, new_amount)

            del self._expenses[found_key]
            self._expenses[new_key] = updated

        self._audit_logger.log_expense_updated(
            expense_id=found.id.value,
            old_category=found.category,
            new_category=updated.category,
            new_amount=new_amount,
            merged_into=target.id.value if target is not None else None,
        )
        self.notify_observers()
        return True

    # =========================================================================
    # Queries (read-only)
    # =========================================================================

    def get_expenses(self) -> tuple[Expense, ...]:
        """Snapshot of the aggregates in first-insertion order."""
        with self._lock:
            return tuple(self._expenses.values())

    def get_total(self) -> float:
        """Sum of every aggregate amount (>= 0)."""
        with self._lock:
            return sum((e.amount for e in self._expenses.values()), 0.0)

    def parse_expense(
        self,
        text: Optional[str],
        expense_id: ExpenseID,
    ) -> Optional[Expense]:
        """
        Parse "category:amount" into an Expense carrying expense_id.

        Whitespace around the colon is optional. Returns None (never
        raises) when the text is None, does not match, has an empty
        category, or an amount that is negative or overflows a float.

        Raises:
            NullArgumentError: If expense_id is None
        """
        if expense_id is None:
            raise NullArgumentError("id cannot be None")
        if text is None:
            return None

        match = PARSE_PATTERN.fullmatch(text)
        if not match:
            return None

        category = match.group(1).strip()
        amount = float(match.group(2))
        if not category or not math.isfinite(amount) or amount < 0:
            return None
        return Expense(expense_id, category, amount)

    def search_by_regex(self, pattern: Optional[str]) -> tuple[Expense, ...]:
        """
        Aggregates whose category matches pattern (case-insensitive search).

        Invalid patterns yield an empty result so partially typed input
        never raises.
        """
        if pattern is None:
            return ()
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.debug("invalid_search_pattern", pattern=pattern, error=str(e))
            return ()

        return tuple(e for e in self.get_expenses() if compiled.search(e.category))

    # =========================================================================
    # Persistence
    # =========================================================================

    def save_to_file(self, path: PathLike) -> bool:
        """
        Write every aggregate to path (overwriting it).

        Returns:
            True if saved successfully

        Raises:
            NullArgumentError: If path is None
        """
        if path is None:
            raise NullArgumentError("file cannot be None")
        return self.save(CsvFileStorage(path))

    def save_to_default_file(self) -> bool:
        """Save to the configured data file."""
        return self.save_to_file(self._data_file)

    def load_from_file(self, path: PathLike) -> bool:
        """
        Replace the whole ledger with the contents of path.

        Returns:
            True if the file existed and every row parsed

        Raises:
            NullArgumentError: If path is None
        """
        if path is None:
            raise NullArgumentError("file cannot be None")
        return self.load(CsvFileStorage(path))

    def load_from_default_file(self) -> bool:
        """Load from the configured data file."""
        return self.load_from_file(self._data_file)

    def save(self, storage: LedgerStorageInterface) -> bool:
        """Write a snapshot of the aggregates to any storage backend."""
        with self._lock:
            rows = [(e.category, e.amount) for e in self._expenses.values()]

        try:
            storage.write_rows(rows)
        except StorageError as e:
            self._audit_logger.log_save_failed(
                path=storage.location,
                error_message=str(e),
            )
            return False

        self._audit_logger.log_ledger_saved(path=storage.location, row_count=len(rows))
        return True

    def load(self, storage: LedgerStorageInterface) -> bool:
        """
        Replace the ledger with the rows of any storage backend.

        Ids are regenerated 1..n in row order. Rows sharing a category
        are merged like add_expense. The current contents are only
        replaced once every row has been read and validated; a failed
        load leaves the ledger untouched.
        """
        try:
            rows = storage.read_rows()
            loaded = self._build_aggregates(rows)
        except StorageNotFoundError as e:
            logger.info("load_skipped", path=storage.location, reason=str(e))
            self._audit_logger.log_load_failed(
                path=storage.location,
                error_message=str(e),
            )
            return False
        except (StorageError, InvalidArgumentError) as e:
            self._audit_logger.log_load_failed(
                path=storage.location,
                error_message=str(e),
            )
            return False

        with self._lock:
            self._expenses = loaded

        self._audit_logger.log_ledger_loaded(path=storage.location, row_count=len(rows))
        self.notify_observers()
        return True

    @staticmethod
    def _build_aggregates(rows: list[Row]) -> dict[str, Expense]:
        aggregates: dict[str, Expense] = {}
        for category, amount in rows:
            expense = Expense(ExpenseID(0), category, amount)
            existing = aggregates.get(expense.key)
            if existing is not None:
                aggregates[expense.key] = existing.with_added_amount(expense.amount)
            else:
                aggregates[expense.key] = expense
        # Ids run 1..n over the merged aggregates
        return {
            key: Expense(ExpenseID(next_id), e.category, e.amount)
            for next_id, (key, e) in enumerate(aggregates.items(), start=1)
        }

    # =========================================================================
    # Change notification
    # =========================================================================

    def add_observer(self, observer: Observer) -> None:
        """Register a zero-argument callback fired after every change."""
        self._notifier.subscribe(observer)

    def remove_observer(self, observer: Optional[Observer]) -> None:
        self._notifier.unsubscribe(observer)

    def notify_observers(self) -> None:
        """Fire every registered callback. Never holds the ledger lock."""
        self._notifier.notify_all()
