"""
Core data models for shipment compliance validation.

All models use Pydantic for runtime validation and type safety.
"""

from .compliance_rule import ComplianceRule, FieldType, TransformName
from .cross_border import (
    CountryRequirement,
    EnhancedDocumentation,
    RequiredField,
    RestrictedDestination,
    RestrictedItem,
    ShippingContext,
)
from .factories import (
    create_compliance_rule,
    create_country_requirement,
    create_enhanced_documentation,
    create_regional_rule,
    create_required_field,
    create_restricted_destination,
    create_restricted_item,
    create_rule_category,
    create_rule_dependency,
    create_validation_constraint,
)
from .finding import (
    ComplianceFinding,
    ComplianceStats,
    CrossBorderReport,
    ShipmentComplianceReport,
    ValidationFinding,
    calculate_compliance_stats,
)
from .regional_rule import RegionalRule
from .rule_category import RuleCategory
from .rule_dependency import RuleDependency
from .validation_constraint import ConstraintType, ValidationConstraint, ValidationLevel

__all__ = [
    "RuleCategory",
    "ComplianceRule",
    "FieldType",
    "TransformName",
    "ValidationConstraint",
    "ConstraintType",
    "ValidationLevel",
    "RuleDependency",
    "RegionalRule",
    "RequiredField",
    "CountryRequirement",
    "RestrictedItem",
    "RestrictedDestination",
    "EnhancedDocumentation",
    "ShippingContext",
    "ValidationFinding",
    "ComplianceFinding",
    "ComplianceStats",
    "CrossBorderReport",
    "ShipmentComplianceReport",
    "calculate_compliance_stats",
    "create_rule_category",
    "create_compliance_rule",
    "create_validation_constraint",
    "create_rule_dependency",
    "create_regional_rule",
    "create_required_field",
    "create_country_requirement",
    "create_restricted_item",
    "create_restricted_destination",
    "create_enhanced_documentation",
]
