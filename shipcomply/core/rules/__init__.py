"""
Field validation engine, rule snapshots and rule configuration management.
"""

from .rule_config import RuleCatalog, RuleConfigBuilder, RuleConfigLoader, parse_rule_config
from .rule_engine import FieldResult, FieldValidationEngine, ShipmentValidation
from .snapshot import ResolvedRule, RuleSnapshot

__all__ = [
    "FieldValidationEngine",
    "FieldResult",
    "ShipmentValidation",
    "RuleSnapshot",
    "ResolvedRule",
    "RuleCatalog",
    "RuleConfigLoader",
    "RuleConfigBuilder",
    "parse_rule_config",
]
