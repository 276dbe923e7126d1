"""
RequiredFieldValidator - ensures key fields of a record are not blank.
"""

from typing import Any

from palletsync.core.errors import RecordValidationError
from palletsync.core.schema.keys import is_blank

from .base_validator import BaseValidator


class RequiredFieldValidator(BaseValidator):
    """
    Validates that named fields of a record are present and not blank.

    Fails if:
    - Field is missing from the record
    - Field value is None
    - Field value is an empty or whitespace-only string
    """

    def validate(self, record: dict[str, Any]) -> None:
        """
        Validate a record.

        Args:
            record: Mapping of field name to value

        Raises:
            RecordValidationError: On the first missing or blank field
        """
        for field_name in self.names:
            if field_name not in record:
                raise RecordValidationError(
                    self.table, field_name, "Field is missing from record"
                )
            if is_blank(record[field_name]):
                raise RecordValidationError(
                    self.table, field_name, "Field value is blank"
                )

    @property
    def rule_type(self) -> str:
        return "required_field"
