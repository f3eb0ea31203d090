"""
Factory functions that build entities from partial records.

Each factory accepts a mapping and/or keyword arguments, supplies the
defaults (new id, is_active=True, current timestamps) and validates the
result. Keys that are not model fields are ignored.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from .compliance_rule import ComplianceRule
from .cross_border import (
    CountryRequirement,
    EnhancedDocumentation,
    RequiredField,
    RestrictedDestination,
    RestrictedItem,
)
from .regional_rule import RegionalRule
from .rule_category import RuleCategory
from .rule_dependency import RuleDependency
from .validation_constraint import ValidationConstraint

ModelT = TypeVar("ModelT", bound=BaseModel)


def _build(model: type[ModelT], data: Mapping[str, Any] | None, overrides: dict[str, Any]) -> ModelT:
    payload = dict(data or {})
    payload.update(overrides)
    # Explicit None means "use the default" for generated fields
    for key in ("id", "created_at", "updated_at", "is_active"):
        if key in payload and payload[key] is None:
            del payload[key]
    return model.model_validate(payload)


def create_rule_category(data: Mapping[str, Any] | None = None, **fields: Any) -> RuleCategory:
    return _build(RuleCategory, data, fields)


def create_compliance_rule(data: Mapping[str, Any] | None = None, **fields: Any) -> ComplianceRule:
    return _build(ComplianceRule, data, fields)


def create_validation_constraint(data: Mapping[str, Any] | None = None, **fields: Any) -> ValidationConstraint:
    return _build(ValidationConstraint, data, fields)


def create_rule_dependency(data: Mapping[str, Any] | None = None, **fields: Any) -> RuleDependency:
    return _build(RuleDependency, data, fields)


def create_regional_rule(data: Mapping[str, Any] | None = None, **fields: Any) -> RegionalRule:
    return _build(RegionalRule, data, fields)


def create_required_field(data: Mapping[str, Any] | None = None, **fields: Any) -> RequiredField:
    return _build(RequiredField, data, fields)


def create_country_requirement(data: Mapping[str, Any] | None = None, **fields: Any) -> CountryRequirement:
    return _build(CountryRequirement, data, fields)


def create_restricted_item(data: Mapping[str, Any] | None = None, **fields: Any) -> RestrictedItem:
    return _build(RestrictedItem, data, fields)


def create_restricted_destination(data: Mapping[str, Any] | None = None, **fields: Any) -> RestrictedDestination:
    return _build(RestrictedDestination, data, fields)


def create_enhanced_documentation(data: Mapping[str, Any] | None = None, **fields: Any) -> EnhancedDocumentation:
    return _build(EnhancedDocumentation, data, fields)
