"""
ValidationConstraint model: an extra, independently evaluated check on a rule.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .common import new_id

ConstraintType = Literal["min", "max", "equal", "pattern", "custom"]
ValidationLevel = Literal["error", "warning", "info"]


class ValidationConstraint(BaseModel):
    """
    A constraint attached to a ComplianceRule.

    constraint_value is string-encoded and read according to constraint_type:
    a number for min/max, a literal for equal, a regex for pattern and a
    registered handler name for custom.
    """

    id: str = Field(default_factory=new_id, min_length=1)
    rule_id: str = Field(..., min_length=1)
    constraint_type: ConstraintType = "pattern"
    constraint_value: str = ""
    validation_level: ValidationLevel = "error"
    error_message: str = ""
    is_active: bool = True
