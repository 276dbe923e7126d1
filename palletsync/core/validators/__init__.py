"""
Validation checks applied before any table write.

Provides validators for required header columns and required record fields.
"""

from .base_validator import BaseValidator
from .required_column_validator import RequiredColumnValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "RequiredColumnValidator",
    "RequiredFieldValidator",
]
