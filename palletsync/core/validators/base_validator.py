"""
Base validator interface for table and record checks.

Validators run before any write so a failing check never leaves a
partial row behind.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator checks one concern (header columns, record fields) for a
    named table and raises a PalletSyncError subclass when the check fails.
    """

    def __init__(self, table: str, names: list[str]):
        """
        Initialize validator.

        Args:
            table: Name of the table being validated (used in diagnostics)
            names: Column or field names the validator checks
        """
        self.table = table
        self.names = list(names)

    @abstractmethod
    def validate(self, subject: Any) -> None:
        """
        Validate a subject (header row or record).

        Raises:
            PalletSyncError: If validation fails
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the rule type identifier."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self.table}, names={self.names})"
