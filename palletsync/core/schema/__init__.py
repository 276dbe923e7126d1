"""
Table schemas and key normalization.
"""

from .columns import (
    BUILD_SCHEMA,
    GRN_SCHEMA,
    LEDGER_SCHEMA,
    STATUS_SCHEMA,
    ColumnMap,
    TableSchema,
)
from .keys import canonical_key, cells_equal, is_blank, is_explicit_false, is_zero_quantity

__all__ = [
    "TableSchema",
    "ColumnMap",
    "BUILD_SCHEMA",
    "LEDGER_SCHEMA",
    "STATUS_SCHEMA",
    "GRN_SCHEMA",
    "canonical_key",
    "cells_equal",
    "is_blank",
    "is_explicit_false",
    "is_zero_quantity",
]
