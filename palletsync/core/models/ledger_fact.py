"""
LedgerFact model representing an append-only pallet transaction.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from palletsync.core.schema.columns import ColumnMap
from palletsync.core.schema.keys import canonical_key

from .cell import CellValue, coerce_quantity, model_from_row


class ActionType(str, Enum):
    """Recognized ledger action types."""

    BUILT = "Built"
    RECEIVED = "Received"
    PUTAWAY = "Putaway"
    SHIPPED = "Shipped"
    EMPTY = "Empty"


OCCUPYING_ACTIONS = frozenset({ActionType.BUILT, ActionType.RECEIVED, ActionType.PUTAWAY})
EMPTYING_ACTIONS = frozenset({ActionType.SHIPPED, ActionType.EMPTY})


class LedgerFact(BaseModel):
    """
    One immutable transaction in the pallet ledger.

    Idempotency key for built facts: (action_type="Built", pallet_id, grn_id).

    Attributes:
        position: 0-based data-row index in the ledger (None before append)
        timestamp: When the transaction happened
        action_type: Raw action label; see `action` for the parsed value
        composite_key: "Pallet ID_GRN ID" value
        pallet_id: Pallet id as stored
        grn_id: Goods-receipt note id as stored
        sku_id: SKU identifier
        sku_description: SKU description
        batch_number: Batch number
        quantity_change: Quantity carried by the transaction (non-numeric
            text is kept verbatim)
        status_label: Derived status label (e.g. "Ready For Putaway")
    """

    position: int | None = Field(None, ge=0)
    timestamp: CellValue = None
    action_type: str = ""
    composite_key: CellValue = ""
    pallet_id: CellValue = ""
    grn_id: CellValue = ""
    sku_id: CellValue = ""
    sku_description: CellValue = ""
    batch_number: CellValue = ""
    quantity_change: CellValue = 0
    status_label: CellValue = ""

    @field_validator("action_type", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> str:
        return canonical_key(v)

    @field_validator("quantity_change", mode="before")
    @classmethod
    def normalize_quantity(cls, v: Any) -> Any:
        return coerce_quantity(v)

    @property
    def action(self) -> ActionType | None:
        """Parsed action type, or None for labels outside ActionType."""
        try:
            return ActionType(self.action_type)
        except ValueError:
            return None

    @classmethod
    def from_row(cls, row: list[Any], columns: ColumnMap, position: int) -> "LedgerFact":
        return model_from_row(cls, row, columns, position)

    def to_row_values(self) -> dict[str, Any]:
        """Field values to write into a ledger row."""
        return self.model_dump(exclude={"position"})

    class Config:
        json_schema_extra = {
            "example": {
                "position": 41,
                "timestamp": "2025-11-17T08:30:00",
                "action_type": "Built",
                "composite_key": "P1-G1",
                "pallet_id": "P1",
                "grn_id": "G1",
                "sku_id": "S1",
                "sku_description": "Frozen peas 1kg",
                "batch_number": "B-2025-11",
                "quantity_change": 10,
                "status_label": "Ready For Putaway",
            }
        }
