"""
Reconciliation components: ledger writer, status materializer, GRN
status propagator and the pipeline that chains them.
"""

from .ledger_writer import LedgerWriter
from .materializer import StatusMaterializer
from .pipeline import PalletAutomation
from .propagator import UpstreamStatusPropagator

__all__ = [
    "LedgerWriter",
    "StatusMaterializer",
    "UpstreamStatusPropagator",
    "PalletAutomation",
]
