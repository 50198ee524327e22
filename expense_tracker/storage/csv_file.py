"""
Flat CSV File Storage

File layout, one aggregate per line, no header:

    <category>,<amount>

- category is written raw unless it contains a comma, a double quote
  or a line break, in which case it is wrapped in double quotes with
  internal quotes doubled (standard CSV quoting)
- amount always has exactly two decimals and a '.' separator

TRADEOFFS:
- No transactions: a crash mid-write can leave a truncated file
- Single process only: nothing guards against concurrent writers
"""

import csv
from pathlib import Path
from typing import Optional, Sequence, Union

from tenacity import (
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import get_settings
from expense_tracker.storage.interface import (
    LedgerStorageInterface,
    MalformedRowError,
    Row,
    StorageError,
    StorageNotFoundError,
)


# Retrying these cannot help
_PERMANENT_OS_ERRORS = (
    FileNotFoundError,
    IsADirectoryError,
    NotADirectoryError,
    PermissionError,
)


def format_amount(amount: float) -> str:
    """Locale-invariant two-decimal rendering used in the file."""
    return f"{amount:.2f}"


class CsvFileStorage(LedgerStorageInterface):
    """
    CSV implementation of ledger storage.

    Writes are retried on transient OS errors.
    """

    def __init__(
        self,
        path: Union[str, Path],
        write_attempts: Optional[int] = None,
    ):
        self._path = Path(path)
        self._write_attempts = write_attempts or get_settings().storage.write_attempts

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def write_rows(self, rows: Sequence[Row]) -> None:
        retryer = Retrying(
            stop=stop_after_attempt(self._write_attempts),
            wait=wait_exponential(multiplier=0.05, max=1),
            retry=(
                retry_if_exception_type(OSError)
                & retry_if_not_exception_type(_PERMANENT_OS_ERRORS)
            ),
            reraise=True,
        )
        try:
            retryer(self._write, rows)
        except OSError as e:
            raise StorageError(f"Could not write {self._path}: {e}") from e

    def _write(self, rows: Sequence[Row]) -> None:
        with self._path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            for category, amount in rows:
                writer.writerow([category, format_amount(amount)])

    def read_rows(self) -> list[Row]:
        if not self._path.is_file():
            raise StorageNotFoundError(f"No such file: {self._path}")

        rows: list[Row] = []
        try:
            with self._path.open("r", encoding="utf-8", newline="") as f:
                reader = csv.reader(f)
                for record in reader:
                    # Blank and single-field lines carry no aggregate
                    if len(record) < 2:
                        continue
                    try:
                        amount = float(record[1])
                    except ValueError:
                        raise MalformedRowError(
                            reader.line_num,
                            f"invalid amount {record[1]!r}",
                        )
                    rows.append((record[0].strip(), amount))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e

        return rows
