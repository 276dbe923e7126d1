"""
End-to-end tests for the pallet automation pipeline.

Covers the full ledger → status → GRN flow on the in-memory and CSV
backends, including the duplicate re-run.
"""

import pytest

from palletsync.core.config import PipelineConfig
from palletsync.core.errors import EmptySourceError
from palletsync.core.schema import BUILD_SCHEMA, GRN_SCHEMA, STATUS_SCHEMA
from palletsync.reconcile import PalletAutomation
from palletsync.warehouse.workbook import create_tables, open_workbook


def snapshot_all(workbook):
    return {key: store.read_all().rows for key, store in workbook.stores().items()}


@pytest.mark.e2e
class TestPalletAutomation:
    """Full pipeline runs on in-memory tables"""

    @pytest.fixture
    def workbook(self, make_workbook, build_row):
        return make_workbook(
            build=[build_row],
            status=[{"Pallet_ID": "P0"}, {"Pallet_ID": "P1"}],
            grn=[{"GRN_ID": "G1", "Status": "Received"}],
        )

    def test_new_build_row_flows_through(self, workbook, read_records, pipeline_config, fixed_clock, fixed_now):
        result = PalletAutomation(workbook, pipeline_config, clock=fixed_clock).run()

        assert not result.skipped
        assert result.errors == []
        assert result.materialize.status == "updated"
        assert result.propagation.status == "updated"

        [ledger_row] = read_records(workbook.ledger)
        assert ledger_row["Action_Type"] == "Built"
        assert ledger_row["Pallet_ID"] == "P1"
        assert ledger_row["GRN_ID"] == "G1"
        assert ledger_row["Qty_Change"] == 10
        assert ledger_row["Status"] == "Ready For Putaway"

        status = read_records(workbook.status)
        assert status[0]["Occupancy_Status"] == ""
        assert status[1]["Occupancy_Status"] == "Occupied"
        assert status[1]["Assignment_Status"] == "Unassigned"
        assert status[1]["Current_Qty"] == 10
        assert status[1]["GRN_ID"] == "G1"
        assert status[1]["Status_Update_Timestamp"] == fixed_now

        assert read_records(workbook.grn) == [{"GRN_ID": "G1", "Status": "Unloading in Progress"}]

    def test_duplicate_run_changes_nothing(self, workbook, pipeline_config, fixed_clock):
        automation = PalletAutomation(workbook, pipeline_config, clock=fixed_clock)
        automation.run()
        before = snapshot_all(workbook)
        writes = {key: len(store.write_log) for key, store in workbook.stores().items()}

        result = automation.run()

        assert result.skipped
        assert result.ledger.status == "duplicate"
        assert result.materialize is None
        assert result.propagation is None
        assert snapshot_all(workbook) == before
        assert {key: len(store.write_log) for key, store in workbook.stores().items()} == writes

    def test_completed_vehicle_leaves_grn(self, workbook, read_records, pipeline_config):
        workbook.build.write_range(0, BUILD_SCHEMA.header.index("Vehicle_Completed"), [[True]])

        result = PalletAutomation(workbook, pipeline_config).run()

        assert result.propagation.status == "no_op"
        assert read_records(workbook.grn)[0]["Status"] == "Received"

    def test_missing_status_row_still_propagates(self, make_workbook, read_records, build_row, pipeline_config):
        workbook = make_workbook(build=[build_row], grn=[{"GRN_ID": "G1", "Status": ""}])

        result = PalletAutomation(workbook, pipeline_config).run()

        assert result.materialize.status == "not_found"
        assert result.propagation.status == "updated"
        assert workbook.status.write_log == []
        assert result.errors == []

    def test_missing_grn_is_not_an_error(self, make_workbook, build_row, pipeline_config):
        workbook = make_workbook(build=[build_row], status=[{"Pallet_ID": "P1"}])

        result = PalletAutomation(workbook, pipeline_config).run()

        assert result.propagation.status == "not_found"
        assert result.propagation.not_found_in == "grn"
        assert result.errors == []

    def test_materializer_failure_is_reported(self, make_workbook, read_records, build_row, pipeline_config):
        """Test a later component failure keeps the ledger row and still runs propagation"""
        workbook = make_workbook(
            build=[build_row],
            grn=[{"GRN_ID": "G1", "Status": ""}],
            status_header=["Occupancy_Status"],
        )

        result = PalletAutomation(workbook, pipeline_config).run()

        assert result.ledger.written
        assert result.materialize is None
        assert len(result.errors) == 1
        assert result.errors[0].startswith("materializer:")
        assert result.propagation.status == "updated"
        assert len(read_records(workbook.ledger)) == 1

    def test_ledger_failure_propagates(self, make_workbook, pipeline_config):
        with pytest.raises(EmptySourceError):
            PalletAutomation(make_workbook(), pipeline_config).run()

    def test_expiry_policy_comes_from_config(self, workbook):
        config = PipelineConfig(backend="memory", apply_expiry_to_empty_pallets=False)

        automation = PalletAutomation(workbook, config)

        assert automation.materializer.apply_expiry_to_empty_pallets is False


@pytest.mark.e2e
class TestCsvPipeline:
    """Full pipeline runs on CSV tables"""

    @pytest.fixture
    def workbook(self, tmp_path, build_row):
        workbook = open_workbook(PipelineConfig(backend="csv", csv_dir=tmp_path))
        create_tables(workbook)

        build_columns = BUILD_SCHEMA.resolve(BUILD_SCHEMA.header)
        workbook.build.append_row([build_row.get(c, "") for c in build_columns.header])
        workbook.status.append_row(STATUS_SCHEMA.resolve(STATUS_SCHEMA.header).build_row({"pallet_id": "P1"}))
        workbook.grn.append_row(GRN_SCHEMA.resolve(GRN_SCHEMA.header).build_row({"grn_id": "G1"}))
        return workbook

    def test_scenario_and_byte_identical_rerun(self, workbook, tmp_path, read_records, fixed_clock):
        config = PipelineConfig(backend="csv", csv_dir=tmp_path)

        first = PalletAutomation(workbook, config, clock=fixed_clock).run()
        files = {path.name: path.read_bytes() for path in tmp_path.glob("*.csv")}
        second = PalletAutomation(workbook, config, clock=fixed_clock).run()

        assert first.ledger.written
        assert second.skipped
        assert {path.name: path.read_bytes() for path in tmp_path.glob("*.csv")} == files

        [ledger_row] = read_records(workbook.ledger)
        assert ledger_row["Qty_Change"] == "10"
        assert ledger_row["DN_ID"] == ""

        [status_row] = read_records(workbook.status)
        assert status_row["Occupancy_Status"] == "Occupied"
        assert status_row["Current_Qty"] == "10"
        assert status_row["Expiry_Date"] == "2026-05-01"
        assert status_row["Status_Update_Timestamp"] == "2025-11-17T09:30:00"

        assert read_records(workbook.grn)[0]["Status"] == "Unloading in Progress"

    def test_materialize_after_run_is_unchanged(self, workbook, tmp_path):
        config = PipelineConfig(backend="csv", csv_dir=tmp_path)
        result = PalletAutomation(workbook, config).run()

        again = PalletAutomation(workbook, config).materializer.materialize_one("P1")

        assert result.materialize.status == "updated"
        assert again.status == "unchanged"
