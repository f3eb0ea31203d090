"""
EqualValidator - validates a value equals a literal.
"""

from collections.abc import Mapping
from typing import Any

from .base_validator import BaseValidator, ValidationError


class EqualValidator(BaseValidator):
    """
    Validates that a value equals an expected string.

    Parameters:
    - expected: The literal the value must equal
    - message: Message reported on mismatch
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        if "expected" not in self.parameters:
            raise ValueError("EqualValidator requires 'expected' parameter")
        self.expected = str(self.parameters["expected"])
        self.message = self.parameters.get("message")

    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        if value is None:
            return

        if value != self.expected:
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=self.field_name,
                message=self.message or f"Value '{value}' must equal '{self.expected}'",
            )

    @property
    def rule_type(self) -> str:
        return "equal"
