"""
Upstream status propagation to goods-receipt notes.

While a vehicle is still being unloaded, the GRN of each pallet built from
it is marked "Unloading in Progress".
"""

from typing import Any

from palletsync.core.config import StatusLabels
from palletsync.core.errors import RecordValidationError
from palletsync.core.models import GrnRecord, PropagationResult
from palletsync.core.schema import BUILD_SCHEMA, GRN_SCHEMA, canonical_key, cells_equal, is_explicit_false
from palletsync.observability.logger import get_logger
from palletsync.observability.metrics import grn_propagations_total, increment_counter
from palletsync.warehouse.workbook import Workbook

logger = get_logger(__name__)

BUILD_REQUIRED = ("grn_id", "pallet_id", "vehicle_completed")
GRN_REQUIRED = ("grn_id", "status")


class UpstreamStatusPropagator:
    """
    Sets the GRN status of a pallet whose vehicle is not yet completed.
    """

    def __init__(self, workbook: Workbook, labels: StatusLabels | None = None):
        self.workbook = workbook
        self.labels = labels or StatusLabels()

    def propagate_incomplete_status(self, pallet_id: Any) -> PropagationResult:
        """
        Mark the pallet's GRN as unloading if its vehicle is not completed.

        The pallet's latest build row decides both the GRN and the
        completion flag. Only a boolean False or the string "FALSE" (any
        case) counts as not completed.

        Args:
            pallet_id: Target pallet

        Returns:
            PropagationResult with status updated, no_op or not_found

        Raises:
            SchemaError: If the build or GRN table lacks a required column
            RecordValidationError: If the pallet id is blank
        """
        key = canonical_key(pallet_id)
        build = self.workbook.build.read_all()
        build_columns = BUILD_SCHEMA.resolve(build.header, required=BUILD_REQUIRED, table=build.name)
        grn = self.workbook.grn.read_all()
        grn_columns = GRN_SCHEMA.resolve(grn.header, required=GRN_REQUIRED, table=grn.name)

        if not key:
            raise RecordValidationError(build.name, "pallet_id", "Target pallet id is blank")

        build_row = None
        for row in reversed(build.rows):
            if canonical_key(build_columns.get(row, "pallet_id")) == key:
                build_row = row
                break

        grn_id = canonical_key(build_columns.get(build_row, "grn_id")) if build_row is not None else ""
        if not grn_id:
            logger.warning(
                f"Could not find GRN_ID for pallet {key} in {build.name}; GRN status not updated",
                extra={"pallet_id": key, "table": build.name},
            )
            increment_counter(grn_propagations_total, outcome="not_found")
            return PropagationResult(pallet_id=key, status="not_found", not_found_in="build")

        if not is_explicit_false(build_columns.get(build_row, "vehicle_completed")):
            logger.info(
                f"Vehicle_Completed is not FALSE for pallet {key}; no GRN status change required",
                extra={"pallet_id": key, "grn_id": grn_id},
            )
            increment_counter(grn_propagations_total, outcome="no_op")
            return PropagationResult(pallet_id=key, status="no_op", grn_id=grn_id)

        logger.info(
            f"Pallet {key} in GRN {grn_id} has Vehicle_Completed = FALSE",
            extra={"pallet_id": key, "grn_id": grn_id},
        )

        target = None
        for position, row in enumerate(grn.rows):
            if canonical_key(grn_columns.get(row, "grn_id")) == grn_id:
                target = GrnRecord.from_row(row, grn_columns, position)
                break

        if target is None:
            logger.warning(
                f"GRN_ID {grn_id} not found in {grn.name}; could not update status",
                extra={"pallet_id": key, "grn_id": grn_id, "table": grn.name},
            )
            increment_counter(grn_propagations_total, outcome="not_found")
            return PropagationResult(
                pallet_id=key, status="not_found", grn_id=grn_id, not_found_in="grn"
            )

        new_status = self.labels.unloading_in_progress
        written = False
        if cells_equal(target.status, new_status):
            logger.info(
                f"GRN {grn_id} already has status '{new_status}'",
                extra={"pallet_id": key, "grn_id": grn_id},
            )
        else:
            self.workbook.grn.write_range(target.position, grn_columns.index("status"), [[new_status]])
            written = True
            logger.info(
                f"GRN status updated: GRN {grn_id} set to '{new_status}'",
                extra={"pallet_id": key, "grn_id": grn_id, "position": target.position},
            )

        increment_counter(grn_propagations_total, outcome="updated")
        return PropagationResult(pallet_id=key, status="updated", grn_id=grn_id, written=written)
