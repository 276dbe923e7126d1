"""
pallet-sync: warehouse receiving reconciliation.

Turns pallet build events into ledger facts, materializes one status row
per pallet and propagates unloading status to goods-receipt notes.
"""

__version__ = "0.1.0"
