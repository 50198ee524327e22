"""
Abstract Storage Interface

DESIGN DECISION: The ledger talks to persistence through an abstract
interface. This allows us to:
1. Keep the CSV format in one place
2. Use in-memory or failing storage in tests
3. Swap the flat file for something else later

The interface is intentionally tiny: the ledger persists
(category, amount) rows and nothing else. Identifiers are NOT
persisted; they are regenerated from row order on load.
"""

from abc import ABC, abstractmethod
from typing import Sequence

Row = tuple[str, float]


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location, used in logs and audit events."""
        pass

    @abstractmethod
    def write_rows(self, rows: Sequence[Row]) -> None:
        """
        Replace the stored rows.

        Args:
            rows: (category, amount) pairs in ledger order

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def read_rows(self) -> list[Row]:
        """
        Read every stored row.

        Returns:
            (category, amount) pairs in stored order. Categories are trimmed.

        Raises:
            StorageNotFoundError: If nothing has been stored yet
            MalformedRowError: If a row cannot be parsed
            StorageError: For any other read failure
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageNotFoundError(StorageError):
    """The storage location does not exist."""
    pass


class MalformedRowError(StorageError):
    """A stored row could not be parsed."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number
