"""
Shared cell-level types and coercions for table-backed models.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ValidationError

from palletsync.core.errors import RecordValidationError
from palletsync.core.schema.columns import ColumnMap
from palletsync.core.schema.keys import is_blank

# Values a table cell may hold across the in-memory, CSV and JSONB stores
CellValue = str | int | float | bool | datetime | date | None


def coerce_quantity(value: Any) -> Any:
    """
    Coerce a quantity cell to a number where it holds one.

    Blank cells count as 0 and integral values come back as int. Text that
    is not a number is returned unchanged.
    """
    if is_blank(value):
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return value
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return value
    if not number.is_finite():
        return value
    if number == number.to_integral_value():
        return int(number)
    return float(number)


def is_number(value: Any) -> bool:
    """True for int and float cells (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def model_from_row(
    model: type[BaseModel], row: list[Any], columns: ColumnMap, position: int
) -> Any:
    """
    Build a table-backed model from a positional row.

    Pydantic validation failures surface as RecordValidationError so callers
    only deal with the engine's own error hierarchy.
    """
    values = {k: v for k, v in columns.extract(row).items() if v is not None}
    try:
        return model(position=position, **values)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc", ())
        field_name = str(loc[0]) if loc else "row"
        raise RecordValidationError(
            columns.table, field_name, f"row {position}: {first.get('msg', str(e))}"
        ) from e
