"""
RuleDependency model. Persisted for future rule graphs; not evaluated.
"""

from typing import Literal

from pydantic import BaseModel, Field

from .common import new_id


class RuleDependency(BaseModel):
    """Links a primary rule to the rule it depends on."""

    id: str = Field(default_factory=new_id, min_length=1)
    primary_rule_id: str = Field(..., min_length=1)
    depends_on_rule_id: str = Field(..., min_length=1)
    dependency_type: Literal["requires", "conditionalOn", "conflicts"] = "requires"
    trigger_value: str | None = None
    is_active: bool = True
