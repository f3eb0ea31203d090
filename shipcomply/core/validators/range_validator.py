"""
RangeValidator - validates the numeric part of a value against a bound.
"""

import re
from collections.abc import Mapping
from typing import Any

from .base_validator import BaseValidator, ValidationError

# First number in the value: "2.5 kg" -> 2.5
NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


def parse_number(value: str) -> float | None:
    """Return the first number found in value, or None."""
    match = NUMBER_PATTERN.search(value)
    return float(match.group()) if match else None


class RangeValidator(BaseValidator):
    """
    Validates that the first number in a value lies within a range.

    Parameters:
    - min: Minimum value (inclusive)
    - max: Maximum value (inclusive)
    - message: Message reported when the value is out of range
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        self.min_value = self.parameters.get("min")
        self.max_value = self.parameters.get("max")
        self.message = self.parameters.get("message")

        if self.min_value is None and self.max_value is None:
            raise ValueError("RangeValidator requires at least one of: min, max")

    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        """
        Raises:
            ValidationError: If the value has no number or is outside the range
        """
        # Blank values are the required check's concern
        if value is None or value.strip() == "":
            return

        number = parse_number(value)
        if number is None:
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=self.field_name,
                message=f"Value '{value}' is not numeric",
            )

        if self.min_value is not None and number < self.min_value:
            raise ValidationError(
                rule_name="min",
                field_name=self.field_name,
                message=self.message or f"Value {number:g} is less than minimum {self.min_value:g}",
            )

        if self.max_value is not None and number > self.max_value:
            raise ValidationError(
                rule_name="max",
                field_name=self.field_name,
                message=self.message or f"Value {number:g} exceeds maximum {self.max_value:g}",
            )

    @property
    def rule_type(self) -> str:
        return "min" if self.max_value is None else "max" if self.min_value is None else "range"
