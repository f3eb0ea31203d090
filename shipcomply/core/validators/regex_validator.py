"""
RegexValidator - validates field values against a regular expression.
"""

import re
from collections.abc import Mapping
from re import Pattern
from typing import Any

from .base_validator import BaseValidator, ValidationError


class RegexValidator(BaseValidator):
    """
    Validates that a regular expression is found in a field value.

    The pattern is searched, not matched, so anchors in the pattern decide
    whether the whole value must conform.

    Parameters:
    - pattern: Regular expression (string or compiled Pattern)
    - message: Message reported when the pattern is not found
    - display_value: Value quoted in the default message, if it differs from
      the validated one
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)

        pattern = self.parameters.get("pattern")
        if not pattern:
            raise ValueError("RegexValidator requires 'pattern' parameter")

        if isinstance(pattern, Pattern):
            self.pattern = pattern
        elif isinstance(pattern, str):
            try:
                self.pattern = re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex pattern: {e}") from e
        else:
            raise ValueError(f"Pattern must be string or compiled Pattern, got {type(pattern)}")

        self.message = self.parameters.get("message")
        self.display_value = self.parameters.get("display_value")

    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        """
        Raises:
            ValidationError: If the pattern is not found in the value
        """
        if value is None:
            return

        if not self.pattern.search(value):
            shown = self.display_value if self.display_value is not None else value
            raise ValidationError(
                rule_name=self.rule_type,
                field_name=self.field_name,
                message=self.message or f"Value '{shown}' does not match pattern '{self.pattern.pattern}'",
            )

    @property
    def rule_type(self) -> str:
        return "pattern"
