"""
CSV-file table store.

One CSV file per table. Reads load the whole file with pandas; writes
rewrite the whole file atomically through a temporary file.
"""

import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from palletsync.core.errors import TableNotFoundError

from .tables import TableSnapshot, TableStore, check_range, splice_range


def serialize_cell(value: Any) -> str:
    """
    Convert a cell value to its CSV text form.

    Booleans are written the way spreadsheets export them (TRUE/FALSE) and
    dates in ISO 8601.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class CsvTableStore(TableStore):
    """
    Table stored as a CSV file with the header on the first line.

    All values read back are strings; blank cells read back as "".
    """

    def __init__(self, path: str | Path, name: str | None = None):
        """
        Initialize CSV table store.

        Args:
            path: CSV file path
            name: Table name (defaults to the file stem)
        """
        self.path = Path(path)
        super().__init__(name or self.path.stem)

    def _load(self) -> tuple[list[str], list[list[str]]]:
        if not self.path.exists():
            raise TableNotFoundError(self.name, str(self.path))
        try:
            df = pd.read_csv(self.path, dtype=str, keep_default_na=False, encoding="utf-8")
        except pd.errors.EmptyDataError:
            return [], []
        return [str(c) for c in df.columns], df.values.tolist()

    def _save(self, header: list[Any], rows: list[list[Any]]) -> None:
        width = len(header)
        padded = [
            [serialize_cell(v) for v in row] + [""] * max(0, width - len(row))
            for row in rows
        ]
        df = pd.DataFrame([r[:width] for r in padded], columns=[serialize_cell(h) for h in header])

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        df.to_csv(tmp_path, index=False, encoding="utf-8")
        os.replace(tmp_path, self.path)

    def read_all(self) -> TableSnapshot:
        header, rows = self._load()
        return TableSnapshot(self.name, header, rows)

    def append_row(self, values: list[Any]) -> int:
        header, rows = self._load()
        rows.append(list(values))
        self._save(header, rows)
        return len(rows) - 1

    def write_range(self, position: int, column: int, rows: list[list[Any]]) -> None:
        header, current = self._load()
        check_range(self.name, len(current), position, column, rows)
        for offset, values in enumerate(rows):
            idx = position + offset
            current[idx] = splice_range(current[idx], column, list(values))
        self._save(header, current)

    def initialize(self, header: list[str]) -> bool:
        if self.path.exists():
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._save(header, [])
        return True
