"""
Ledger writer: turns the newest build row into a `Built` ledger fact.

The ledger is append-only. A fact is written at most once per
(pallet, GRN) pair; re-running on an unchanged build source is a no-op.
"""

from datetime import datetime
from typing import Callable

from palletsync.core.config import StatusLabels
from palletsync.core.errors import EmptySourceError
from palletsync.core.models import ActionType, BuildRecord, LedgerFact, LedgerWriteResult
from palletsync.core.models.cell import is_number
from palletsync.core.schema import BUILD_SCHEMA, LEDGER_SCHEMA, ColumnMap, canonical_key, is_blank
from palletsync.core.validators import RequiredFieldValidator
from palletsync.observability.logger import get_logger
from palletsync.observability.metrics import (
    increment_counter,
    ledger_duplicates_total,
    ledger_facts_written_total,
)
from palletsync.warehouse.tables import TableSnapshot
from palletsync.warehouse.workbook import Workbook

logger = get_logger(__name__)

BUILD_REQUIRED = ("grn_id", "pallet_id", "composite_key", "timestamp")
LEDGER_REQUIRED = ("action_type", "pallet_id", "grn_id")


class LedgerWriter:
    """
    Appends normalized, deduplicated `Built` facts to the transaction ledger.
    """

    def __init__(
        self,
        workbook: Workbook,
        labels: StatusLabels | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize ledger writer.

        Args:
            workbook: Table stores
            labels: Status labels (the fact's Status column)
            clock: Timestamp source for build rows with a blank timestamp
        """
        self.workbook = workbook
        self.labels = labels or StatusLabels()
        self.clock = clock or datetime.now

    def record_built_transaction(self) -> LedgerWriteResult:
        """
        Record the latest build row as a `Built` fact unless already present.

        Returns:
            LedgerWriteResult with status "written" or "duplicate"

        Raises:
            SchemaError: If a required build or ledger column is missing
            EmptySourceError: If the build source has no data rows
            RecordValidationError: If the latest build row has a blank
                pallet or GRN id
        """
        build = self.workbook.build.read_all()
        build_columns = BUILD_SCHEMA.resolve(build.header, required=BUILD_REQUIRED, table=build.name)

        if not build.rows:
            raise EmptySourceError(build.name)

        position = len(build.rows) - 1
        record = BuildRecord.from_row(build.rows[position], build_columns, position)
        RequiredFieldValidator(build.name, ["pallet_id", "grn_id"]).validate(record.model_dump())
        pallet_id, grn_id = record.pallet_key, record.grn_key

        if not is_number(record.quantity):
            logger.warning(
                f"Quantity '{record.quantity}' for pallet {pallet_id} is not a number; copied as is",
                extra={"pallet_id": pallet_id, "grn_id": grn_id, "build_position": position},
            )

        ledger = self.workbook.ledger.read_all()
        ledger_columns = LEDGER_SCHEMA.resolve(ledger.header, required=LEDGER_REQUIRED, table=ledger.name)

        duplicate_at = self.find_built_fact(ledger, ledger_columns, pallet_id, grn_id)
        if duplicate_at is not None:
            logger.info(
                f"Skipped: Built transaction already recorded for pallet {pallet_id} "
                f"and GRN {grn_id}",
                extra={
                    "pallet_id": pallet_id,
                    "grn_id": grn_id,
                    "ledger_position": duplicate_at,
                },
            )
            increment_counter(ledger_duplicates_total)
            return LedgerWriteResult(status="duplicate", pallet_id=pallet_id, grn_id=grn_id)

        fact = self.build_fact(record)
        ledger_position = self.workbook.ledger.append_row(
            ledger_columns.build_row(fact.to_row_values())
        )
        fact.position = ledger_position

        increment_counter(ledger_facts_written_total)
        logger.info(
            f"Ledger updated | GRN: {grn_id} | Pallet: {pallet_id} | "
            f"Status: {fact.status_label}",
            extra={
                "pallet_id": pallet_id,
                "grn_id": grn_id,
                "build_position": record.position,
                "ledger_position": ledger_position,
            },
        )
        return LedgerWriteResult(
            status="written",
            pallet_id=pallet_id,
            grn_id=grn_id,
            position=ledger_position,
            fact=fact,
        )

    def build_fact(self, record: BuildRecord) -> LedgerFact:
        """Synthesize the `Built` fact for a build record."""
        timestamp = record.timestamp
        if is_blank(timestamp):
            timestamp = self.clock()

        return LedgerFact(
            timestamp=timestamp,
            action_type=ActionType.BUILT.value,
            composite_key=record.composite_key,
            pallet_id=record.pallet_id,
            grn_id=record.grn_id,
            sku_id=record.sku_id if not is_blank(record.sku_id) else "",
            sku_description=record.sku_description if not is_blank(record.sku_description) else "",
            batch_number=record.batch_number if not is_blank(record.batch_number) else "",
            quantity_change=record.quantity,
            status_label=self.labels.ready_for_putaway,
        )

    @staticmethod
    def find_built_fact(
        ledger: TableSnapshot, columns: ColumnMap, pallet_id: str, grn_id: str
    ) -> int | None:
        """
        Find an existing `Built` fact for a (pallet, GRN) pair.

        Args:
            ledger: Ledger snapshot
            columns: Resolved ledger columns
            pallet_id: Canonical pallet key
            grn_id: Canonical GRN key

        Returns:
            Ledger position of the first match, or None
        """
        for position, row in enumerate(ledger.rows):
            if (
                canonical_key(columns.get(row, "action_type")) == ActionType.BUILT.value
                and canonical_key(columns.get(row, "pallet_id")) == pallet_id
                and canonical_key(columns.get(row, "grn_id")) == grn_id
            ):
                return position
        return None
