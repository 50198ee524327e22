"""
Storage Package

Provides the abstract ledger storage interface and the CSV file backend.
"""

from expense_tracker.storage.interface import (
    LedgerStorageInterface,
    MalformedRowError,
    Row,
    StorageError,
    StorageNotFoundError,
)
from expense_tracker.storage.csv_file import CsvFileStorage, format_amount

__all__ = [
    # Interface
    "LedgerStorageInterface",
    "Row",
    # Exceptions
    "MalformedRowError",
    "StorageError",
    "StorageNotFoundError",
    # CSV implementation
    "CsvFileStorage",
    "format_amount",
]
