"""
Constraint validators.

Provides validators for required fields, numeric ranges, literal equality,
regex patterns and host-registered custom handlers.
"""

from .base_validator import BaseValidator, ValidationError
from .custom_validator import CustomConstraintRegistry, CustomHandler, CustomValidator
from .equal_validator import EqualValidator
from .range_validator import RangeValidator, parse_number
from .regex_validator import RegexValidator
from .required_field_validator import RequiredFieldValidator

__all__ = [
    "BaseValidator",
    "ValidationError",
    "RequiredFieldValidator",
    "RangeValidator",
    "EqualValidator",
    "RegexValidator",
    "CustomValidator",
    "CustomConstraintRegistry",
    "CustomHandler",
    "parse_number",
]
