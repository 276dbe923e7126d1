"""
GrnRecord model representing a goods-receipt note in the upstream table.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from palletsync.core.schema.columns import ColumnMap
from palletsync.core.schema.keys import canonical_key

from .cell import CellValue, model_from_row


class GrnRecord(BaseModel):
    """
    Goods-receipt note row. Only `status` is ever written by the engine.
    """

    position: int = Field(..., ge=0)
    grn_id: str = ""
    status: CellValue = ""

    @field_validator("grn_id", mode="before")
    @classmethod
    def normalize_key(cls, v: Any) -> str:
        return canonical_key(v)

    @classmethod
    def from_row(cls, row: list[Any], columns: ColumnMap, position: int) -> "GrnRecord":
        return model_from_row(cls, row, columns, position)
