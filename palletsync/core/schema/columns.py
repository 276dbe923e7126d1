"""
Column schemas for the four tables the engine reads and writes.

Tables are addressed by column name, never by position. A TableSchema maps
field names to header names; resolving it against a table's first row yields
a ColumnMap that gives the rest of the engine named access to positional rows.
"""

from typing import Any, Iterable, Sequence

from palletsync.core.validators.required_column_validator import RequiredColumnValidator


class ColumnMap:
    """
    Field-name access to the rows of one table, resolved from its header.

    Only fields whose column exists in the header are mapped; reads of an
    unmapped field return the default and writes to it are ignored.
    """

    def __init__(self, table: str, header: list[str], indices: dict[str, int]):
        self.table = table
        self.header = header
        self.indices = indices

    def __contains__(self, field_name: str) -> bool:
        return field_name in self.indices

    def index(self, field_name: str) -> int:
        """Return the column index of a mapped field."""
        return self.indices[field_name]

    def get(self, row: Sequence[Any], field_name: str, default: Any = None) -> Any:
        idx = self.indices.get(field_name)
        if idx is None or idx >= len(row):
            return default
        return row[idx]

    def extract(self, row: Sequence[Any]) -> dict[str, Any]:
        """Return every mapped field of a row as a dict."""
        return {field_name: self.get(row, field_name) for field_name in self.indices}

    def build_row(self, values: dict[str, Any], fill: Any = "") -> list[Any]:
        """
        Build a full-width row for this header.

        Columns with no mapped field (or no value supplied) get `fill`.
        """
        row = [fill] * len(self.header)
        for field_name, value in values.items():
            idx = self.indices.get(field_name)
            if idx is not None:
                row[idx] = value
        return row

    def updated_row(self, row: Sequence[Any], changes: dict[str, Any]) -> list[Any]:
        """Copy a row, padded to header width, with `changes` applied."""
        new_row = list(row) + [""] * max(0, len(self.header) - len(row))
        for field_name, value in changes.items():
            idx = self.indices.get(field_name)
            if idx is not None:
                new_row[idx] = value
        return new_row


class TableSchema:
    """
    Declares the field → column mapping and canonical header of a table.

    Attributes:
        name: Default table (sheet) name
        columns: Ordered mapping of field name to header name
        header: Canonical header row used when creating the table; may
            contain columns the engine never maps (filled blank on write)
    """

    def __init__(
        self,
        name: str,
        columns: dict[str, str],
        header: list[str] | None = None,
    ):
        self.name = name
        self.columns = dict(columns)
        self.header = list(header) if header is not None else list(self.columns.values())

    def column(self, field_name: str) -> str:
        return self.columns[field_name]

    def resolve(
        self,
        header: Sequence[Any],
        required: Iterable[str] = (),
        table: str | None = None,
    ) -> ColumnMap:
        """
        Resolve this schema against a table's header row.

        Args:
            header: The table's first row
            required: Field names whose columns must be present
            table: Table name for diagnostics (defaults to schema name)

        Returns:
            ColumnMap for the header

        Raises:
            SchemaError: If any required column is missing
        """
        table_name = table or self.name
        names = ["" if cell is None else str(cell).strip() for cell in header]

        RequiredColumnValidator(
            table_name, [self.columns[field_name] for field_name in required]
        ).validate(names)

        indices = {}
        for field_name, column in self.columns.items():
            if column in names:
                indices[field_name] = names.index(column)

        return ColumnMap(table_name, names, indices)


BUILD_SCHEMA = TableSchema(
    name="Pallet_Build_IB_04",
    columns={
        "timestamp": "Timestamp",
        "grn_id": "GRN_ID",
        "composite_key": "Pallet_GRN",
        "pallet_id": "Pallet_ID",
        "sku_id": "SKU_ID",
        "sku_description": "SKU_Description",
        "batch_number": "Batch_Number",
        "quantity": "Quantity_Boxes",
        "expiry_date": "Expiry_Date",
        "vehicle_completed": "Vehicle_Completed",
    },
)

LEDGER_SCHEMA = TableSchema(
    name="Pallet_Transaction_Ledger",
    columns={
        "timestamp": "Timestamp",
        "action_type": "Action_Type",
        "composite_key": "Pallet ID_GRN ID",
        "pallet_id": "Pallet_ID",
        "grn_id": "GRN_ID",
        "sku_id": "SKU_ID",
        "sku_description": "SKU_Description",
        "batch_number": "Batch_No",
        "quantity_change": "Qty_Change",
        "status_label": "Status",
    },
    header=[
        "Timestamp",
        "Action_Type",
        "Pallet ID_GRN ID",
        "Pallet_ID",
        "GRN_ID",
        "DN_ID",
        "SKU_ID",
        "SKU_Description",
        "Batch_No",
        "Qty_Change",
        "Status",
    ],
)

STATUS_SCHEMA = TableSchema(
    name="Pallet_Status_02",
    columns={
        "pallet_id": "Pallet_ID",
        "occupancy_status": "Occupancy_Status",
        "grn_id": "GRN_ID",
        "sku_id": "SKU_ID",
        "sku_description": "SKU_Description",
        "expiry_date": "Expiry_Date",
        "batch_number": "Batch_Number",
        "location_id": "Location_ID",
        "current_quantity": "Current_Qty",
        "last_ledger_timestamp": "Last_Updated",
        "assignment_status": "Assignment_Status",
        "last_materialized_at": "Status_Update_Timestamp",
    },
)

GRN_SCHEMA = TableSchema(
    name="GRN_Entry_IB_01",
    columns={
        "grn_id": "GRN_ID",
        "status": "Status",
    },
)
