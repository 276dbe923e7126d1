"""
Result models returned by the reconciliation components (ephemeral).

Skips and missing keys are ordinary outcomes, reported here rather than
raised.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .ledger_fact import LedgerFact


class LedgerWriteResult(BaseModel):
    """
    Outcome of recording a built transaction.

    Attributes:
        status: "written" when a fact was appended, "duplicate" when skipped
        pallet_id: Pallet of the latest build row
        grn_id: GRN of the latest build row
        position: Ledger data-row index of the appended fact
        fact: The appended fact (None on duplicate)
    """

    status: Literal["written", "duplicate"]
    pallet_id: str
    grn_id: str
    position: int | None = None
    fact: LedgerFact | None = None

    @property
    def written(self) -> bool:
        return self.status == "written"


class MaterializeResult(BaseModel):
    """
    Outcome of materializing one pallet's status row.

    Attributes:
        pallet_id: Target pallet
        status: "updated" (row written), "unchanged" (nothing differed, no
            write), or "not_found" (no status row for the pallet)
        fact_found: A ledger fact matched the pallet
        build_found: A build row matched the pallet
        ledger_updated: Applying the ledger fact changed the row
        expiry_updated: Applying the build expiry changed the expiry cell left
            by the ledger step
        changed_fields: Fields whose stored value changed
        position: Status data-row index
    """

    pallet_id: str
    status: Literal["updated", "unchanged", "not_found"]
    fact_found: bool = False
    build_found: bool = False
    ledger_updated: bool = False
    expiry_updated: bool = False
    changed_fields: list[str] = Field(default_factory=list)
    position: int | None = None


class RebuildResult(BaseModel):
    """
    Counts from a full status rebuild.

    Attributes:
        status_rows: Status rows with a pallet id
        ledger_facts_scanned: Ledger data rows read
        build_rows_scanned: Build data rows read
        ledger_updates: Rows changed by their latest ledger fact
        expiry_updates: Rows whose expiry cell the latest build row changed
        rows_written: Rows whose stored values changed
        missing_pallets: Ledger/build pallets with no status row
        skipped_pallets: Pallets left untouched because a row could not be
            parsed
    """

    status_rows: int = 0
    ledger_facts_scanned: int = 0
    build_rows_scanned: int = 0
    ledger_updates: int = 0
    expiry_updates: int = 0
    rows_written: int = 0
    missing_pallets: list[str] = Field(default_factory=list)
    skipped_pallets: list[str] = Field(default_factory=list)


class PropagationResult(BaseModel):
    """
    Outcome of propagating the unloading status to a GRN.

    Attributes:
        pallet_id: Target pallet
        status: "updated", "no_op" (vehicle completed) or "not_found"
        grn_id: GRN of the pallet's build row, when one matched
        not_found_in: Which table lacked the key ("build" or "grn")
        written: Whether the GRN row was actually rewritten
    """

    pallet_id: str
    status: Literal["updated", "no_op", "not_found"]
    grn_id: str | None = None
    not_found_in: Literal["build", "grn"] | None = None
    written: bool = False


class PipelineResult(BaseModel):
    """
    Outcome of one pallet automation run.

    Attributes:
        ledger: Ledger Writer outcome
        materialize: Materializer outcome (None if skipped or failed)
        propagation: Propagator outcome (None if skipped or failed)
        errors: Diagnostics from components that aborted after the ledger write
    """

    ledger: LedgerWriteResult
    materialize: MaterializeResult | None = None
    propagation: PropagationResult | None = None
    errors: list[str] = Field(default_factory=list)

    @property
    def skipped(self) -> bool:
        return not self.ledger.written
