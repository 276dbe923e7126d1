"""
Status materialization.

Merges the latest ledger fact and the latest build record of a pallet into
its row of the status view. The targeted path reconciles one pallet; the
rebuild path indexes every ledger and build row in one forward pass and then
runs the same per-pallet reconciliation for every status row, so both paths
produce identical rows for the same inputs and clock.

Flow per pallet:
1. Locate the status row (absent → not_found, no write)
2. Apply the latest ledger fact and its occupancy transition
3. Apply the latest build expiry date
4. Write back only the cells that changed, plus the materialization stamp
"""

from datetime import datetime
from typing import Any, Callable

from palletsync.core.config import StatusLabels
from palletsync.core.errors import RecordValidationError
from palletsync.core.models import (
    LedgerFact,
    MATERIALIZED_FIELDS,
    MaterializeResult,
    PalletStatus,
    RebuildResult,
)
from palletsync.core.models.ledger_fact import EMPTYING_ACTIONS, OCCUPYING_ACTIONS
from palletsync.core.schema import (
    BUILD_SCHEMA,
    LEDGER_SCHEMA,
    STATUS_SCHEMA,
    ColumnMap,
    canonical_key,
    cells_equal,
    is_blank,
    is_zero_quantity,
)
from palletsync.observability.logger import get_logger
from palletsync.observability.metrics import (
    increment_counter,
    materializations_total,
    stale_expiry_applied_total,
    status_rows_written_total,
    unrecognized_actions_total,
)
from palletsync.warehouse.tables import TableSnapshot
from palletsync.warehouse.workbook import Workbook

logger = get_logger(__name__)

OCCUPIED = "occupied"
EMPTY = "empty"
UNRECOGNIZED = "unrecognized"


class Reconciliation:
    """
    Result of reconciling one status row against its latest inputs.

    Attributes:
        pallet_id: Canonical pallet key
        position: Status data-row index
        changes: Field → new value for every mapped cell that differs
        ledger_updated: The ledger step changed at least one cell
        expiry_updated: The expiry step changed the expiry cell
        fact_found: A ledger fact matched the pallet
        build_found: A build row matched the pallet
    """

    def __init__(self, pallet_id: str, position: int):
        self.pallet_id = pallet_id
        self.position = position
        self.changes: dict[str, Any] = {}
        self.ledger_updated = False
        self.expiry_updated = False
        self.fact_found = False
        self.build_found = False

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def classify_transition(fact: LedgerFact) -> str:
    """
    Map a ledger fact to its occupancy transition.

    Built/Received/Putaway occupy the pallet. Shipped/Empty, or any fact
    carrying a zero quantity, empty it. Anything else is unrecognized.
    """
    action = fact.action
    if action in OCCUPYING_ACTIONS:
        return OCCUPIED
    if action in EMPTYING_ACTIONS or is_zero_quantity(fact.quantity_change):
        return EMPTY
    return UNRECOGNIZED


def _blank_if_none(value: Any) -> Any:
    return "" if value is None else value


class StatusMaterializer:
    """
    Keeps the pallet status view in line with the ledger and build source.

    The status view is never grown: a pallet without a status row is
    reported, not created.
    """

    def __init__(
        self,
        workbook: Workbook,
        labels: StatusLabels | None = None,
        clock: Callable[[], datetime] | None = None,
        apply_expiry_to_empty_pallets: bool = True,
    ):
        """
        Initialize status materializer.

        Args:
            workbook: Table stores
            labels: Occupancy and assignment labels
            clock: Returns the materialization timestamp
            apply_expiry_to_empty_pallets: Write the build expiry even when
                the latest ledger fact emptied the pallet
        """
        self.workbook = workbook
        self.labels = labels or StatusLabels()
        self.clock = clock or datetime.now
        self.apply_expiry_to_empty_pallets = apply_expiry_to_empty_pallets

    # ------------------------------------------------------------------
    # Targeted mode
    # ------------------------------------------------------------------

    def materialize_one(self, pallet_id: Any) -> MaterializeResult:
        """
        Materialize the status row of a single pallet.

        Args:
            pallet_id: Target pallet (any representation of the key)

        Returns:
            MaterializeResult with status updated, unchanged or not_found

        Raises:
            SchemaError: If a table lacks a required column
            RecordValidationError: If the pallet id is blank or a matched
                row cannot be parsed
        """
        key = canonical_key(pallet_id)
        status_snapshot, status_columns = self._read_status()
        if not key:
            raise RecordValidationError(status_snapshot.name, "pallet_id", "Target pallet id is blank")

        logger.info(f"Materializing status for pallet {key}", extra={"pallet_id": key})

        index = self._index_status(status_snapshot, status_columns)
        position = index.get(key)
        if position is None:
            logger.warning(
                f"Pallet {key} not found in {status_snapshot.name}; status not updated",
                extra={"pallet_id": key, "table": status_snapshot.name},
            )
            increment_counter(materializations_total, mode="targeted", outcome="not_found")
            return MaterializeResult(pallet_id=key, status="not_found")

        ledger_snapshot, ledger_columns = self._read_ledger()
        build_snapshot, build_columns = self._read_build()

        fact_position = self._find_last(ledger_snapshot, ledger_columns, key)
        build_position = self._find_last(build_snapshot, build_columns, key)

        reconciliation = self._reconcile(
            key,
            position,
            status_snapshot.rows[position],
            status_columns,
            self._fact_at(ledger_snapshot, ledger_columns, fact_position),
            self._build_row_at(build_snapshot, build_position),
            build_columns,
        )

        if not reconciliation.changed:
            logger.info(
                f"No changes for pallet {key}; no write needed",
                extra={"pallet_id": key, "position": position},
            )
            increment_counter(materializations_total, mode="targeted", outcome="unchanged")
            return self._result(reconciliation, "unchanged")

        changes = self._stamp(reconciliation, status_columns)
        new_row = self._full_width(
            status_columns.updated_row(status_snapshot.rows[position], changes),
            len(status_columns.header),
        )
        self.workbook.status.write_range(position, 0, [new_row])

        increment_counter(materializations_total, mode="targeted", outcome="updated")
        increment_counter(status_rows_written_total, mode="targeted")
        logger.info(
            f"Status row written for pallet {key}",
            extra={
                "pallet_id": key,
                "position": position,
                "ledger_updated": reconciliation.ledger_updated,
                "expiry_updated": reconciliation.expiry_updated,
                "changed_fields": sorted(reconciliation.changes),
            },
        )
        return self._result(reconciliation, "updated")

    # ------------------------------------------------------------------
    # Rebuild mode
    # ------------------------------------------------------------------

    def materialize_all(self) -> RebuildResult:
        """
        Rebuild every status row from the ledger and build source.

        Latest fact and latest build row per pallet are found in one forward
        pass each (last occurrence in source order wins). Changed rows are
        written in one bounded range spanning the first to the last changed
        row. A pallet whose status row or latest fact cannot be parsed is
        logged and skipped; the other pallets are still written.

        Returns:
            RebuildResult with counts
        """
        status_snapshot, status_columns = self._read_status()
        ledger_snapshot, ledger_columns = self._read_ledger()
        build_snapshot, build_columns = self._read_build()

        logger.info(
            "Rebuilding pallet status view",
            extra={
                "status_rows": len(status_snapshot),
                "ledger_rows": len(ledger_snapshot),
                "build_rows": len(build_snapshot),
            },
        )

        index = self._index_status(status_snapshot, status_columns)
        last_fact = self._index_last(ledger_snapshot, ledger_columns)
        last_build = self._index_last(build_snapshot, build_columns)

        result = RebuildResult(
            status_rows=len(index),
            ledger_facts_scanned=len(ledger_snapshot),
            build_rows_scanned=len(build_snapshot),
        )

        new_rows: dict[int, list[Any]] = {}
        for key, position in index.items():
            try:
                reconciliation = self._reconcile(
                    key,
                    position,
                    status_snapshot.rows[position],
                    status_columns,
                    self._fact_at(ledger_snapshot, ledger_columns, last_fact.get(key)),
                    self._build_row_at(build_snapshot, last_build.get(key)),
                    build_columns,
                )
            except RecordValidationError as e:
                logger.warning(
                    f"Skipping pallet {key}: {e}",
                    extra={"pallet_id": key, "position": position, "error_type": type(e).__name__},
                )
                increment_counter(materializations_total, mode="rebuild", outcome="skipped")
                result.skipped_pallets.append(key)
                continue
            if reconciliation.ledger_updated:
                result.ledger_updates += 1
            if reconciliation.expiry_updated:
                result.expiry_updates += 1
            if reconciliation.changed:
                changes = self._stamp(reconciliation, status_columns)
                new_rows[position] = status_columns.updated_row(status_snapshot.rows[position], changes)
                increment_counter(materializations_total, mode="rebuild", outcome="updated")
            else:
                increment_counter(materializations_total, mode="rebuild", outcome="unchanged")

        result.missing_pallets = sorted((set(last_fact) | set(last_build)) - set(index))
        for key in result.missing_pallets:
            logger.warning(
                f"Pallet {key} has ledger or build rows but no status row",
                extra={"pallet_id": key, "table": status_snapshot.name},
            )

        if new_rows:
            first, last = min(new_rows), max(new_rows)
            block = [
                new_rows.get(position, status_snapshot.rows[position])
                for position in range(first, last + 1)
            ]
            width = max(len(status_columns.header), max(len(row) for row in block))
            self.workbook.status.write_range(
                first, 0, [self._full_width(row, width) for row in block]
            )
            result.rows_written = len(new_rows)
            increment_counter(status_rows_written_total, value=len(new_rows), mode="rebuild")

        logger.info(
            "Status rebuild complete",
            extra={
                "ledger_updates": result.ledger_updates,
                "expiry_updates": result.expiry_updates,
                "rows_written": result.rows_written,
                "missing_pallets": len(result.missing_pallets),
                "skipped_pallets": len(result.skipped_pallets),
            },
        )
        return result

    # ------------------------------------------------------------------
    # Per-pallet reconciliation
    # ------------------------------------------------------------------

    def _reconcile(
        self,
        key: str,
        position: int,
        status_row: list[Any],
        status_columns: ColumnMap,
        fact: LedgerFact | None,
        build_row: list[Any] | None,
        build_columns: ColumnMap,
    ) -> Reconciliation:
        status = PalletStatus.from_row(status_row, status_columns, position)
        current = status.field_values()
        target = dict(current)
        reconciliation = Reconciliation(key, position)

        transition = None
        if fact is None:
            logger.info(f"No ledger fact for pallet {key}", extra={"pallet_id": key})
        else:
            reconciliation.fact_found = True
            transition = self._apply_fact(key, fact, target)
            reconciliation.ledger_updated = bool(self._diff(status_columns, current, target))

        if build_row is None:
            logger.info(f"No build row for pallet {key}", extra={"pallet_id": key})
        else:
            reconciliation.build_found = True
            expiry = build_columns.get(build_row, "expiry_date")
            before = target["expiry_date"]
            if is_blank(expiry):
                logger.debug(f"Build row for pallet {key} has no expiry date", extra={"pallet_id": key})
            elif transition == EMPTY and not self.apply_expiry_to_empty_pallets:
                logger.info(
                    f"Expiry not applied: pallet {key} is empty",
                    extra={"pallet_id": key, "expiry_date": str(expiry)},
                )
            else:
                if transition == EMPTY:
                    logger.warning(
                        f"Applying build expiry to pallet {key} emptied by its latest ledger fact",
                        extra={"pallet_id": key, "expiry_date": str(expiry)},
                    )
                    increment_counter(stale_expiry_applied_total)
                target["expiry_date"] = expiry
                reconciliation.expiry_updated = (
                    "expiry_date" in status_columns and not cells_equal(before, expiry)
                )

        reconciliation.changes = self._diff(status_columns, current, target)
        return reconciliation

    def _apply_fact(self, key: str, fact: LedgerFact, target: dict[str, Any]) -> str:
        """Copy fact values into `target` and apply its occupancy transition."""
        target.update(
            sku_id=_blank_if_none(fact.sku_id),
            sku_description=_blank_if_none(fact.sku_description),
            batch_number=_blank_if_none(fact.batch_number),
            current_quantity=fact.quantity_change,
            grn_id=fact.grn_id,
            last_ledger_timestamp=_blank_if_none(fact.timestamp),
        )

        transition = classify_transition(fact)
        if transition == OCCUPIED:
            target["occupancy_status"] = self.labels.occupied
            target["assignment_status"] = self.labels.unassigned
        elif transition == EMPTY:
            target.update(
                occupancy_status=self.labels.empty,
                assignment_status=self.labels.not_applicable,
                sku_id="",
                sku_description="",
                batch_number="",
                current_quantity=0,
                grn_id="",
                expiry_date="",
                location_id="",
            )
        else:
            logger.warning(
                f"Unrecognized action type '{fact.action_type}' for pallet {key}; "
                "occupancy left unchanged",
                extra={"pallet_id": key, "action_type": fact.action_type},
            )
            increment_counter(unrecognized_actions_total, action_type=fact.action_type or "<blank>")

        logger.debug(
            f"Applied ledger fact to pallet {key}",
            extra={"pallet_id": key, "action_type": fact.action_type, "transition": transition},
        )
        return transition

    @staticmethod
    def _diff(columns: ColumnMap, current: dict[str, Any], target: dict[str, Any]) -> dict[str, Any]:
        return {
            name: target[name]
            for name in MATERIALIZED_FIELDS
            if name in columns and not cells_equal(current[name], target[name])
        }

    def _stamp(self, reconciliation: Reconciliation, columns: ColumnMap) -> dict[str, Any]:
        changes = dict(reconciliation.changes)
        if "last_materialized_at" in columns:
            changes["last_materialized_at"] = self.clock()
        return changes

    @staticmethod
    def _result(reconciliation: Reconciliation, status: str) -> MaterializeResult:
        return MaterializeResult(
            pallet_id=reconciliation.pallet_id,
            status=status,
            fact_found=reconciliation.fact_found,
            build_found=reconciliation.build_found,
            ledger_updated=reconciliation.ledger_updated,
            expiry_updated=reconciliation.expiry_updated,
            changed_fields=sorted(reconciliation.changes),
            position=reconciliation.position,
        )

    # ------------------------------------------------------------------
    # Table access
    # ------------------------------------------------------------------

    def _read_status(self) -> tuple[TableSnapshot, ColumnMap]:
        snapshot = self.workbook.status.read_all()
        return snapshot, STATUS_SCHEMA.resolve(snapshot.header, required=("pallet_id",), table=snapshot.name)

    def _read_ledger(self) -> tuple[TableSnapshot, ColumnMap]:
        snapshot = self.workbook.ledger.read_all()
        columns = LEDGER_SCHEMA.resolve(
            snapshot.header, required=("action_type", "pallet_id"), table=snapshot.name
        )
        return snapshot, columns

    def _read_build(self) -> tuple[TableSnapshot, ColumnMap]:
        snapshot = self.workbook.build.read_all()
        return snapshot, BUILD_SCHEMA.resolve(snapshot.header, required=("pallet_id",), table=snapshot.name)

    @staticmethod
    def _index_status(snapshot: TableSnapshot, columns: ColumnMap) -> dict[str, int]:
        """Map pallet key → status row position; the last duplicate wins."""
        index: dict[str, int] = {}
        for position, row in enumerate(snapshot.rows):
            key = canonical_key(columns.get(row, "pallet_id"))
            if not key:
                continue
            if key in index:
                logger.warning(
                    f"Duplicate status rows for pallet {key}; using the last one",
                    extra={"pallet_id": key, "positions": [index[key], position]},
                )
            index[key] = position
        return index

    @staticmethod
    def _index_last(snapshot: TableSnapshot, columns: ColumnMap) -> dict[str, int]:
        """Map pallet key → position of its last row in source order."""
        index: dict[str, int] = {}
        for position, row in enumerate(snapshot.rows):
            key = canonical_key(columns.get(row, "pallet_id"))
            if key:
                index[key] = position
        return index

    @staticmethod
    def _find_last(snapshot: TableSnapshot, columns: ColumnMap, key: str) -> int | None:
        for position in range(len(snapshot.rows) - 1, -1, -1):
            if canonical_key(columns.get(snapshot.rows[position], "pallet_id")) == key:
                return position
        return None

    @staticmethod
    def _fact_at(snapshot: TableSnapshot, columns: ColumnMap, position: int | None) -> LedgerFact | None:
        if position is None:
            return None
        return LedgerFact.from_row(snapshot.rows[position], columns, position)

    @staticmethod
    def _build_row_at(snapshot: TableSnapshot, position: int | None) -> list[Any] | None:
        if position is None:
            return None
        return snapshot.rows[position]

    @staticmethod
    def _full_width(row: list[Any], width: int) -> list[Any]:
        return list(row) + [""] * max(0, width - len(row))
