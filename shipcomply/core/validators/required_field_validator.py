"""
RequiredFieldValidator - ensures a field has a non-blank value.
"""

from collections.abc import Mapping
from typing import Any

from .base_validator import BaseValidator, ValidationError


class RequiredFieldValidator(BaseValidator):
    """
    Validates that a required field is present and not blank.

    Parameters:
    - display_name: Name used in the message, defaults to the field name
    """

    def __init__(self, field_name: str, parameters: dict[str, Any] | None = None):
        super().__init__(field_name, parameters)
        self.display_name = self.parameters.get("display_name") or field_name

    def validate(self, value: str | None, record: Mapping[str, str]) -> None:
        """
        Raises:
            ValidationError: If the value is missing, None or whitespace only
        """
        if value is None or value.strip() == "":
            raise ValidationError(
                rule_name="required",
                field_name=self.field_name,
                message=f"{self.display_name} is required",
            )

    @property
    def rule_type(self) -> str:
        return "required"
