"""
Table store abstraction.

Every table the engine touches (build source, ledger, status view, GRN
entries) is a header row plus positional data rows. Stores expose exactly
the operations the engine needs: read everything, append one row, and
overwrite one bounded rectangular range.
"""

from abc import ABC, abstractmethod
from typing import Any

from palletsync.core.errors import TableNotFoundError


class TableSnapshot:
    """
    Full in-memory copy of a table.

    Attributes:
        name: Table name
        header: Column names from the first row
        rows: Data rows; rows[i] is at position i
    """

    def __init__(self, name: str, header: list[Any], rows: list[list[Any]]):
        self.name = name
        self.header = header
        self.rows = rows

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"TableSnapshot(name={self.name}, columns={len(self.header)}, rows={len(self.rows)})"


def splice_range(row: list[Any], column: int, values: list[Any]) -> list[Any]:
    """
    Return a copy of `row` with `values` written from `column` onward.

    The row is padded with blanks when the range extends past its end.
    """
    end = column + len(values)
    new_row = list(row) + [""] * max(0, end - len(row))
    new_row[column:end] = values
    return new_row


def check_range(table: str, row_count: int, position: int, column: int, rows: list[list[Any]]) -> None:
    """
    Validate a bounded write range against the table's current size.

    Raises:
        IndexError: If the range starts or ends outside the data rows
        ValueError: If the range is empty or not rectangular
    """
    if not rows:
        raise ValueError(f"[{table}] write range is empty")
    width = len(rows[0])
    if any(len(r) != width for r in rows):
        raise ValueError(f"[{table}] write range is not rectangular")
    if position < 0 or column < 0:
        raise IndexError(f"[{table}] negative range start ({position}, {column})")
    if position + len(rows) > row_count:
        raise IndexError(
            f"[{table}] range rows {position}..{position + len(rows) - 1} "
            f"outside {row_count} data rows"
        )


class TableStore(ABC):
    """
    Abstract base class for table stores.

    Positions are 0-based data-row indices (the header is not counted).
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def read_all(self) -> TableSnapshot:
        """
        Read header and all data rows.

        Raises:
            TableNotFoundError: If the table does not exist
        """
        pass

    @abstractmethod
    def append_row(self, values: list[Any]) -> int:
        """
        Append one data row after the current last row.

        Returns:
            Position of the new row
        """
        pass

    @abstractmethod
    def write_range(self, position: int, column: int, rows: list[list[Any]]) -> None:
        """
        Overwrite a rectangular range of existing data rows.

        Args:
            position: First data row of the range
            column: First column of the range
            rows: Range values, one list per row, all the same width
        """
        pass

    @abstractmethod
    def initialize(self, header: list[str]) -> bool:
        """
        Create the table with a header row if it does not exist yet.

        Returns:
            True if the table was created, False if it already existed
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class InMemoryTableStore(TableStore):
    """
    Table held in process memory.

    Every write is recorded in `write_log` as (operation, position, column,
    rows) so callers can assert exactly which writes happened.
    """

    def __init__(
        self,
        name: str,
        header: list[Any] | None = None,
        rows: list[list[Any]] | None = None,
    ):
        super().__init__(name)
        self._header = list(header) if header is not None else None
        self._rows = [list(r) for r in rows or []]
        self.write_log: list[tuple[str, int, int, list[list[Any]]]] = []

    def _require(self) -> list[Any]:
        if self._header is None:
            raise TableNotFoundError(self.name, "memory")
        return self._header

    def read_all(self) -> TableSnapshot:
        header = self._require()
        return TableSnapshot(self.name, list(header), [list(r) for r in self._rows])

    def append_row(self, values: list[Any]) -> int:
        self._require()
        self._rows.append(list(values))
        position = len(self._rows) - 1
        self.write_log.append(("append", position, 0, [list(values)]))
        return position

    def write_range(self, position: int, column: int, rows: list[list[Any]]) -> None:
        self._require()
        check_range(self.name, len(self._rows), position, column, rows)
        for offset, values in enumerate(rows):
            idx = position + offset
            self._rows[idx] = splice_range(self._rows[idx], column, list(values))
        self.write_log.append(("write", position, column, [list(r) for r in rows]))

    def initialize(self, header: list[str]) -> bool:
        if self._header is not None:
            return False
        self._header = list(header)
        return True
