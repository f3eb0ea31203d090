"""
RegionalRule model: a per-country override of a rule's pattern, message or
required-ness.
"""

from pydantic import BaseModel, Field, field_validator

from .common import new_id


class RegionalRule(BaseModel):
    """
    Override keyed by (base_rule_id, region).

    Attributes left as None keep the base rule's value.
    """

    id: str = Field(default_factory=new_id, min_length=1)
    base_rule_id: str = Field(..., min_length=1)
    region: str = Field(..., min_length=2)
    validation_pattern: str | None = None
    validation_message: str | None = None
    is_required: bool | None = None
    is_active: bool = True

    @field_validator("region")
    @classmethod
    def uppercase_region(cls, v: str) -> str:
        return v.strip().upper()
