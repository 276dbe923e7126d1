"""
Exception hierarchy for the reconciliation engine.

Duplicates and missing keys are not errors: they are reported through
result statuses. Only conditions that abort a component raise.
"""


class PalletSyncError(Exception):
    """Base class for all engine errors."""


class SchemaError(PalletSyncError):
    """Raised when a table's header row lacks required columns."""

    def __init__(self, table: str, missing_columns: list[str]):
        self.table = table
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"[{table}] missing required column(s): {', '.join(self.missing_columns)}"
        )


class EmptySourceError(PalletSyncError):
    """Raised when a source table has a header but no data rows."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"[{table}] appears empty or has only headers")


class RecordValidationError(PalletSyncError):
    """Raised when a row has a blank value in a field that must be set."""

    def __init__(self, table: str, field_name: str, message: str):
        self.table = table
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{table}] {field_name}: {message}")


class TableNotFoundError(PalletSyncError):
    """Raised when a backing table (file, sheet) does not exist."""

    def __init__(self, table: str, location: str | None = None):
        self.table = table
        self.location = location
        detail = f" at {location}" if location else ""
        super().__init__(f"Table '{table}' not found{detail}")
