"""
RequiredColumnValidator - ensures a header row names every required column.
"""

from typing import Sequence

from palletsync.core.errors import SchemaError

from .base_validator import BaseValidator


class RequiredColumnValidator(BaseValidator):
    """
    Validates that all required column names appear in a header row.

    Reports every missing column at once rather than the first one found.
    """

    def validate(self, header: Sequence[str]) -> None:
        """
        Validate a header row.

        Args:
            header: Column names from the table's first row

        Raises:
            SchemaError: If any required column is absent
        """
        present = set(header)
        missing = [name for name in self.names if name not in present]
        if missing:
            raise SchemaError(self.table, missing)

    @property
    def rule_type(self) -> str:
        return "required_column"
