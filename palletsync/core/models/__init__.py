"""
Core data models for the pallet reconciliation engine.

All models use Pydantic for runtime validation and type safety.
"""

from .build_record import BuildRecord
from .grn_record import GrnRecord
from .ledger_fact import ActionType, LedgerFact
from .outcomes import (
    LedgerWriteResult,
    MaterializeResult,
    PipelineResult,
    PropagationResult,
    RebuildResult,
)
from .pallet_status import MATERIALIZED_FIELDS, PalletStatus

__all__ = [
    "ActionType",
    "BuildRecord",
    "LedgerFact",
    "PalletStatus",
    "GrnRecord",
    "MATERIALIZED_FIELDS",
    "LedgerWriteResult",
    "MaterializeResult",
    "RebuildResult",
    "PropagationResult",
    "PipelineResult",
]
