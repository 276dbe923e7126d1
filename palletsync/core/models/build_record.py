"""
BuildRecord model representing one pallet build event from the build source.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from palletsync.core.schema.columns import ColumnMap
from palletsync.core.schema.keys import canonical_key

from .cell import CellValue, coerce_quantity, model_from_row


class BuildRecord(BaseModel):
    """
    A pallet build event (read-only; produced by an external process).

    Row position is the only recency signal: a higher position is newer.
    Key cells keep their source value; compare them through `pallet_key`
    and `grn_key`.

    Attributes:
        position: 0-based data-row index in the build source
        pallet_id: Pallet id as stored in the source
        grn_id: Goods-receipt note id as stored in the source
        composite_key: Pallet_GRN value
        timestamp: Build time as stored in the source
        sku_id: SKU identifier
        sku_description: SKU description
        batch_number: Batch number
        quantity: Boxes on the pallet (non-numeric text is kept verbatim)
        expiry_date: Product expiry date
        vehicle_completed: Raw completion flag cell
    """

    position: int = Field(..., ge=0)
    pallet_id: CellValue = ""
    grn_id: CellValue = ""
    composite_key: CellValue = ""
    timestamp: CellValue = None
    sku_id: CellValue = ""
    sku_description: CellValue = ""
    batch_number: CellValue = ""
    quantity: CellValue = 0
    expiry_date: CellValue = None
    vehicle_completed: CellValue = None

    @field_validator("quantity", mode="before")
    @classmethod
    def normalize_quantity(cls, v: Any) -> Any:
        return coerce_quantity(v)

    @property
    def pallet_key(self) -> str:
        return canonical_key(self.pallet_id)

    @property
    def grn_key(self) -> str:
        return canonical_key(self.grn_id)

    @classmethod
    def from_row(cls, row: list[Any], columns: ColumnMap, position: int) -> "BuildRecord":
        return model_from_row(cls, row, columns, position)

    class Config:
        json_schema_extra = {
            "example": {
                "position": 0,
                "pallet_id": "P1",
                "grn_id": "G1",
                "composite_key": "P1-G1",
                "timestamp": "2025-11-17T08:30:00",
                "sku_id": "S1",
                "sku_description": "Frozen peas 1kg",
                "batch_number": "B-2025-11",
                "quantity": 10,
                "expiry_date": "2026-05-01",
                "vehicle_completed": False,
            }
        }
