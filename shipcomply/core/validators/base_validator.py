"""
Base validator interface for constraint checks.

All validators inherit from BaseValidator and implement validate(). A failed
check raises ValidationError; the engine turns it into a finding.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class ValidationError(Exception):
    """Raised when a validation check fails."""

    def __init__(self, rule_name: str, field_name: str, message: str):
        self.rule_name = rule_name
        self.field_name = field_name
        self.message = message
        super().__init__(f"[{rule_name}] {field_name}: {message}")


class BaseValidator(ABC):
    """
    Abstract base class for all validators.

    Each validator implements one check type
    (required, min, max, equal, pattern, custom).
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        """
        Initialize validator.

        Args:
            field_name: Shipment field the validator checks
            parameters: Check-specific parameters (e.g. min/max for a range)
        """
        self.field_name = field_name
        self.parameters = parameters or {}

    @abstractmethod
    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        """
        Validate a value.

        Args:
            value: The field value to validate
            record: The whole shipment field map (for context-dependent checks)

        Raises:
            ValidationError: If validation fails
        """
        pass

    @property
    @abstractmethod
    def rule_type(self) -> str:
        """Return the check type identifier."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(field={self.field_name}, params={self.parameters})"
