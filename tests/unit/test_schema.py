"""
Unit tests for table schemas and column maps
"""

import pytest

from palletsync.core.errors import SchemaError
from palletsync.core.schema import BUILD_SCHEMA, LEDGER_SCHEMA, STATUS_SCHEMA, TableSchema


class TestTableSchema:
    """Tests for TableSchema.resolve"""

    def test_resolve_maps_by_name_not_position(self):
        header = ["Pallet_ID", "Extra", "Timestamp", "GRN_ID", "Pallet_GRN"]
        columns = BUILD_SCHEMA.resolve(header, required=("pallet_id", "grn_id"))

        assert columns.index("pallet_id") == 0
        assert columns.index("timestamp") == 2
        assert "sku_id" not in columns

    def test_header_cells_are_stripped(self):
        columns = BUILD_SCHEMA.resolve([" Pallet_ID ", "GRN_ID\n"], required=("pallet_id", "grn_id"))
        assert columns.index("grn_id") == 1

    def test_missing_required_columns(self):
        with pytest.raises(SchemaError) as exc_info:
            BUILD_SCHEMA.resolve(["Pallet_ID"], required=("grn_id", "pallet_id", "timestamp"))

        assert exc_info.value.missing_columns == ["GRN_ID", "Timestamp"]
        assert exc_info.value.table == "Pallet_Build_IB_04"

    def test_table_name_override(self):
        with pytest.raises(SchemaError) as exc_info:
            BUILD_SCHEMA.resolve([], required=("pallet_id",), table="Builds_Copy")
        assert exc_info.value.table == "Builds_Copy"

    def test_ledger_header_keeps_unmapped_dn_id(self):
        assert "DN_ID" in LEDGER_SCHEMA.header
        assert "DN_ID" not in LEDGER_SCHEMA.columns.values()

    def test_default_header_is_column_order(self):
        schema = TableSchema("T", {"a": "A", "b": "B"})
        assert schema.header == ["A", "B"]


class TestColumnMap:
    """Tests for ColumnMap row access"""

    @pytest.fixture
    def columns(self):
        return STATUS_SCHEMA.resolve(["Pallet_ID", "Occupancy_Status", "Current_Qty", "Notes"])

    def test_get_with_short_row(self, columns):
        assert columns.get(["P1"], "current_quantity", default="n/a") == "n/a"
        assert columns.get(["P1"], "location_id") is None

    def test_extract(self, columns):
        assert columns.extract(["P1", "Empty", 0, "x"]) == {
            "pallet_id": "P1",
            "occupancy_status": "Empty",
            "current_quantity": 0,
        }

    def test_build_row_fills_unmapped(self, columns):
        row = columns.build_row({"pallet_id": "P9", "location_id": "A-01"})
        assert row == ["P9", "", "", ""]

    def test_updated_row_keeps_other_cells(self, columns):
        row = columns.updated_row(["P1", "Occupied"], {"current_quantity": 4})
        assert row == ["P1", "Occupied", 4, ""]
