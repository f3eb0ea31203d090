"""
ComplianceRule model: a typed field specification with a validation pattern.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .common import new_id, utc_now

FieldType = Literal["text", "date", "number", "select", "regex"]

# Closed set of host-defined normalizations. "custom" is reserved and never
# executes anything; the value is passed through unchanged.
TransformName = Literal[
    "trim",
    "uppercase",
    "uppercase_no_spaces",
    "lowercase",
    "remove_spaces",
    "country_code",
    "normalize_date_iso",
    "normalize_weight",
    "normalize_dimensions",
    "normalize_decimal",
    "currency_code",
    "custom",
]


class ComplianceRule(BaseModel):
    """
    A named, typed field specification.

    Attributes:
        id: Rule identifier
        category_id: Owning RuleCategory id (required)
        field_key: Logical shipment field name ("trackingNumber")
        display_name: Human-readable name ("Tracking Number")
        description: Free-text description
        field_type: "text", "date", "number", "select" or "regex"
        is_required: Whether an empty value is a violation
        is_active: Whether the rule is evaluated
        validation_pattern: Regular expression source, empty for none
        validation_message: Message reported when the pattern does not match
        example_value: A value that satisfies the rule
        transform: Named normalization applied for display/storage
        priority: Ordering key within the category, lower sorts first
        metadata: Opaque key/value bag
        created_by / updated_by: Optional audit fields
    """

    id: str = Field(default_factory=new_id, min_length=1)
    category_id: str = Field(..., min_length=1)
    field_key: str = Field(..., min_length=1)
    display_name: str = ""
    description: str = ""
    field_type: FieldType = "text"
    is_required: bool = False
    is_active: bool = True
    validation_pattern: str = ""
    validation_message: str = ""
    example_value: str = ""
    transform: TransformName | None = None
    priority: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str | None = None
    updated_by: str | None = None

    @property
    def label(self) -> str:
        """Display name, falling back to the field key."""
        return self.display_name or self.field_key

    class Config:
        json_schema_extra = {
            "example": {
                "category_id": "7d4b6c1e-0f7c-4a51-9d0e-1f3b2f1c9a10",
                "field_key": "weight",
                "display_name": "Weight",
                "field_type": "text",
                "is_required": True,
                "validation_pattern": r"^\d+(\.\d+)?\s*(kg|g|lb|lbs|oz)$",
                "validation_message": "Weight must include a number and unit (kg, g, lb, oz)",
                "example_value": "2.5 kg",
                "transform": "normalize_weight",
                "priority": 10,
            }
        }
