"""
Pallet automation pipeline orchestration.

Coordinates the flow: ledger write → status materialization → GRN propagation
"""

from datetime import datetime
from typing import Callable

from palletsync.core.config import PipelineConfig
from palletsync.core.errors import PalletSyncError
from palletsync.core.models import PipelineResult
from palletsync.observability.logger import get_logger, log_operation
from palletsync.observability.metrics import (
    increment_counter,
    pipeline_duration_seconds,
    pipeline_runs_total,
    record_component_error,
    track_duration,
)
from palletsync.warehouse.workbook import Workbook

from .ledger_writer import LedgerWriter
from .materializer import StatusMaterializer
from .propagator import UpstreamStatusPropagator

logger = get_logger(__name__)


class PalletAutomation:
    """
    Runs the pallet automation once for the newest build row.

    Flow:
    1. Record the latest build row as a Built ledger fact
    2. If a fact was written, materialize that pallet's status row
    3. Propagate the unloading status to the pallet's GRN

    A duplicate build row stops the run after step 1. Failures in steps 2
    and 3 are logged and reported; the ledger row is not rolled back.
    """

    def __init__(
        self,
        workbook: Workbook,
        config: PipelineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize pallet automation.

        Args:
            workbook: Table stores
            config: Pipeline configuration (labels, expiry policy)
            clock: Timestamp source shared by all components
        """
        self.workbook = workbook
        self.config = config or PipelineConfig()
        self.clock = clock or datetime.now

        labels = self.config.labels
        self.ledger_writer = LedgerWriter(workbook, labels=labels, clock=self.clock)
        self.materializer = StatusMaterializer(
            workbook,
            labels=labels,
            clock=self.clock,
            apply_expiry_to_empty_pallets=self.config.apply_expiry_to_empty_pallets,
        )
        self.propagator = UpstreamStatusPropagator(workbook, labels=labels)

    def run(self) -> PipelineResult:
        """
        Execute the pipeline.

        Returns:
            PipelineResult

        Raises:
            PalletSyncError: If the ledger write fails
        """
        with track_duration(pipeline_duration_seconds, operation="run"):
            with log_operation("Pallet automation run", logger=logger):
                try:
                    ledger_result = self.ledger_writer.record_built_transaction()
                except PalletSyncError as e:
                    record_component_error("ledger_writer", e)
                    increment_counter(pipeline_runs_total, outcome="error")
                    raise

                result = PipelineResult(ledger=ledger_result)
                if not ledger_result.written:
                    logger.info(
                        "No new pallet added to the ledger; skipping status sync and GRN check",
                        extra={"pallet_id": ledger_result.pallet_id, "grn_id": ledger_result.grn_id},
                    )
                    increment_counter(pipeline_runs_total, outcome="duplicate")
                    return result

                pallet_id = ledger_result.pallet_id

                try:
                    result.materialize = self.materializer.materialize_one(pallet_id)
                except PalletSyncError as e:
                    self._record_failure(result, "materializer", pallet_id, e)

                try:
                    result.propagation = self.propagator.propagate_incomplete_status(pallet_id)
                except PalletSyncError as e:
                    self._record_failure(result, "propagator", pallet_id, e)

                increment_counter(
                    pipeline_runs_total, outcome="partial" if result.errors else "written"
                )
                return result

    @staticmethod
    def _record_failure(result: PipelineResult, component: str, pallet_id: str, error: Exception) -> None:
        logger.error(
            f"{component} failed for pallet {pallet_id}: {error}",
            extra={
                "pallet_id": pallet_id,
                "component": component,
                "error_type": type(error).__name__,
            },
        )
        record_component_error(component, error)
        result.errors.append(f"{component}: {error}")
