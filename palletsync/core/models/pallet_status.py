"""
PalletStatus model representing the materialized current state of a pallet.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from palletsync.core.schema.columns import ColumnMap
from palletsync.core.schema.keys import canonical_key

from .cell import CellValue, model_from_row

# Fields the materializer may rewrite; pallet_id is the row key and never changes
MATERIALIZED_FIELDS = (
    "occupancy_status",
    "grn_id",
    "sku_id",
    "sku_description",
    "expiry_date",
    "batch_number",
    "location_id",
    "current_quantity",
    "last_ledger_timestamp",
    "assignment_status",
    "last_materialized_at",
)


class PalletStatus(BaseModel):
    """
    One row of the pallet status view (exactly one per pallet).

    Rows are allocated by an external process; the engine only updates them.
    Values other than the key are kept exactly as stored so unchanged cells
    are written back untouched.

    Attributes:
        position: 0-based data-row index in the status view
        pallet_id: Canonical pallet key
        occupancy_status: Occupied / Empty label
        grn_id: GRN currently on the pallet
        sku_id: SKU identifier
        sku_description: SKU description
        expiry_date: Product expiry date
        batch_number: Batch number
        location_id: Storage location
        current_quantity: Quantity on the pallet
        last_ledger_timestamp: Timestamp of the latest applied ledger fact
        assignment_status: Unassigned / N/A / downstream assignment label
        last_materialized_at: When the row was last rewritten by the engine
    """

    position: int = Field(..., ge=0)
    pallet_id: str = ""
    occupancy_status: CellValue = ""
    grn_id: CellValue = ""
    sku_id: CellValue = ""
    sku_description: CellValue = ""
    expiry_date: CellValue = ""
    batch_number: CellValue = ""
    location_id: CellValue = ""
    current_quantity: CellValue = ""
    last_ledger_timestamp: CellValue = ""
    assignment_status: CellValue = ""
    last_materialized_at: CellValue = ""

    @field_validator("pallet_id", mode="before")
    @classmethod
    def normalize_key(cls, v: Any) -> str:
        return canonical_key(v)

    @classmethod
    def from_row(cls, row: list[Any], columns: ColumnMap, position: int) -> "PalletStatus":
        return model_from_row(cls, row, columns, position)

    def field_values(self) -> dict[str, Any]:
        """Current values of every materialized field."""
        return {name: getattr(self, name) for name in MATERIALIZED_FIELDS}
