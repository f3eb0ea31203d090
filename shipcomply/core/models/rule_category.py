"""
RuleCategory model grouping compliance rules for ordering and administration.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .common import new_id, utc_now


class RuleCategory(BaseModel):
    """
    A named group of compliance rules.

    Attributes:
        id: Category identifier
        name: Display name ("Shipping Information")
        description: Free-text description
        priority: Ordering key, lower sorts first
        is_active: Whether rules in this category are evaluated
        created_at: Creation timestamp
        updated_at: Last replace timestamp
    """

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = ""
    description: str = ""
    priority: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Package Details",
                "description": "Rules for validating package characteristics and dimensions",
                "priority": 20,
                "is_active": True,
            }
        }
