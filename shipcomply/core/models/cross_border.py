"""
Cross-border reference entities: required fields, country requirements,
restricted items, restricted destinations and enhanced documentation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .common import new_id, utc_now

ShippingContext = Literal["domestic", "international", "all"]


class _ReferenceEntity(BaseModel):
    """Fields shared by every cross-border reference record."""

    id: str = Field(default_factory=new_id, min_length=1)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class RequiredField(_ReferenceEntity):
    """A field that must be present for a shipping context."""

    field_key: str = Field(..., min_length=1)
    display_name: str = ""
    description: str = ""
    context: ShippingContext = "all"


class CountryRequirement(_ReferenceEntity):
    """Fields a destination country requires for customs clearance."""

    country_code: str = Field(..., min_length=2)
    country_name: str = ""
    required_fields: list[str] = Field(default_factory=list)
    description: str = ""
    documentation_notes: str = ""

    @field_validator("country_code")
    @classmethod
    def uppercase_code(cls, v: str) -> str:
        return v.strip().upper()


class RestrictedItem(_ReferenceEntity):
    """
    A restricted package-content category.

    applies_to is either the literal "ALL" or a list of country codes.
    """

    category: str = Field(..., min_length=1)
    description: str = ""
    applies_to: Literal["ALL"] | list[str] = "ALL"
    restrictions: str = ""
    severity: Literal["prohibited", "restricted", "controlled"] = "restricted"

    @field_validator("applies_to")
    @classmethod
    def uppercase_codes(cls, v):
        if isinstance(v, list):
            return [code.strip().upper() for code in v]
        return v

    def applies_to_country(self, country_code: str) -> bool:
        if self.applies_to == "ALL":
            return True
        return country_code in self.applies_to


class RestrictedDestination(_ReferenceEntity):
    """A destination under embargo, sanctions or limited service."""

    country_code: str = Field(..., min_length=2)
    country_name: str = ""
    restriction_type: Literal["embargoed", "sanctions", "limited"] = "limited"
    details: str = ""

    @field_validator("country_code")
    @classmethod
    def uppercase_code(cls, v: str) -> str:
        return v.strip().upper()


class EnhancedDocumentation(_ReferenceEntity):
    """A destination that requires paperwork beyond the baseline."""

    country_code: str = Field(..., min_length=2)
    country_name: str = ""
    requirements: list[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("country_code")
    @classmethod
    def uppercase_code(cls, v: str) -> str:
        return v.strip().upper()
