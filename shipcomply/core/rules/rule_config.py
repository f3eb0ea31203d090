"""
Rule catalog configuration.

Loads categories, rules and constraints from YAML files and provides a
builder for assembling catalogs in code (tests, admin scripts).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from shipcomply.core.models import (
    ComplianceRule,
    RuleCategory,
    ValidationConstraint,
    create_compliance_rule,
    create_rule_category,
    create_validation_constraint,
)

VALID_LEVELS = ("error", "warning", "info")
CONSTRAINT_TYPES = ("min", "max", "equal", "pattern", "custom")


@dataclass
class RuleCatalog:
    """Categories, rules and constraints ready to be written to a store."""

    categories: list[RuleCategory] = field(default_factory=list)
    rules: list[ComplianceRule] = field(default_factory=list)
    constraints: list[ValidationConstraint] = field(default_factory=list)

    def rule_for(self, field_key: str) -> ComplianceRule | None:
        return next((r for r in self.rules if r.field_key == field_key), None)


class RuleConfigLoader:
    """
    Loads a rule catalog from a YAML configuration file.

    Expected YAML format:
    ```yaml
    categories:
      package:
        name: Package Details
        priority: 20

    rules:
      weight:
        category: package
        display_name: Weight
        is_required: true
        validation_pattern: "^\\d+(\\.\\d+)?\\s*(kg|g|lb|lbs|oz)$"
        transform: normalize_weight
        constraints:
          - type: min
            value: "0.1"
            level: error
            message: Weight must be greater than 0.1
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the rule config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Rule configuration file not found: {config_path}")

    def load(self) -> RuleCatalog:
        """
        Load and parse the rule catalog.

        Returns:
            RuleCatalog with freshly generated ids

        Raises:
            ValueError: If the YAML is invalid or a definition is malformed
        """
        with open(self.config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f)

        return parse_rule_config(config)


def parse_rule_config(config: dict[str, Any] | None) -> RuleCatalog:
    """
    Build a RuleCatalog from an already-parsed configuration mapping.

    Raises:
        ValueError: If required sections are missing or a definition is malformed
    """
    if not config or "rules" not in config:
        raise ValueError("Configuration must contain a 'rules' section")

    catalog = RuleCatalog()
    category_ids: dict[str, str] = {}

    for key, definition in (config.get("categories") or {}).items():
        category = _build(create_rule_category, definition, f"category '{key}'")
        category_ids[key] = category.id
        catalog.categories.append(category)

    for field_key, definition in config["rules"].items():
        if not isinstance(definition, dict):
            raise ValueError(f"Rule for field '{field_key}' must be a mapping")

        definition = dict(definition)
        category_key = definition.pop("category", None)
        if category_key not in category_ids:
            raise ValueError(f"Rule for field '{field_key}' references unknown category '{category_key}'")
        constraint_defs = definition.pop("constraints", []) or []

        rule = _build(
            create_compliance_rule,
            {**definition, "field_key": field_key, "category_id": category_ids[category_key]},
            f"rule '{field_key}'",
        )
        catalog.rules.append(rule)

        for idx, constraint_def in enumerate(constraint_defs):
            catalog.constraints.append(_parse_constraint(rule, constraint_def, idx))

    return catalog


def _parse_constraint(rule: ComplianceRule, constraint_def: dict[str, Any], idx: int) -> ValidationConstraint:
    """
    Parse a single constraint definition.

    Raises:
        ValueError: If the definition is invalid
    """
    if "type" not in constraint_def:
        raise ValueError(f"Constraint {idx} for field '{rule.field_key}' is missing 'type'")

    constraint_type = constraint_def["type"]
    if constraint_type not in CONSTRAINT_TYPES:
        raise ValueError(f"Unknown constraint type '{constraint_type}' for field '{rule.field_key}'")

    level = constraint_def.get("level", "error")
    if level not in VALID_LEVELS:
        raise ValueError(
            f"Invalid level '{level}' for constraint {idx} on '{rule.field_key}'. "
            f"Must be one of {', '.join(VALID_LEVELS)}"
        )

    return _build(
        create_validation_constraint,
        {
            "rule_id": rule.id,
            "constraint_type": constraint_type,
            "constraint_value": str(constraint_def.get("value", "")),
            "validation_level": level,
            "error_message": constraint_def.get("message", ""),
            "is_active": constraint_def.get("enabled", True),
        },
        f"constraint {idx} on '{rule.field_key}'",
    )


def _build(factory, data: dict[str, Any], what: str):
    try:
        return factory(data)
    except ValidationError as e:
        raise ValueError(f"Invalid {what}: {e}") from e


class RuleConfigBuilder:
    """
    Programmatically build rule catalogs (for testing or dynamic rules).
    """

    def __init__(self):
        """Initialize an empty catalog."""
        self.catalog = RuleCatalog()
        self._categories: dict[str, RuleCategory] = {}

    def add_category(self, key: str, name: str = "", priority: int = 0, **fields: Any) -> "RuleConfigBuilder":
        """Add a category addressable by key in later add_rule calls."""
        category = create_rule_category(name=name or key, priority=priority, **fields)
        self._categories[key] = category
        self.catalog.categories.append(category)
        return self

    def add_rule(
        self,
        field_key: str,
        category: str = "default",
        pattern: str = "",
        required: bool = False,
        transform: str | None = None,
        message: str = "",
        **fields: Any,
    ) -> "RuleConfigBuilder":
        """Add a rule; the category is created on first use."""
        if category not in self._categories:
            self.add_category(category)
        self.catalog.rules.append(
            create_compliance_rule(
                category_id=self._categories[category].id,
                field_key=field_key,
                validation_pattern=pattern,
                validation_message=message,
                is_required=required,
                transform=transform,
                **fields,
            )
        )
        return self

    def add_constraint(
        self,
        field_key: str,
        constraint_type: str,
        value: Any = "",
        level: str = "error",
        message: str = "",
    ) -> "RuleConfigBuilder":
        """Attach a constraint to a previously added rule."""
        rule = self.catalog.rule_for(field_key)
        if rule is None:
            raise ValueError(f"No rule for field '{field_key}'; add the rule first")
        self.catalog.constraints.append(
            create_validation_constraint(
                rule_id=rule.id,
                constraint_type=constraint_type,
                constraint_value=str(value),
                validation_level=level,
                error_message=message,
            )
        )
        return self

    def add_range(
        self,
        field_key: str,
        min_value: float | None = None,
        max_value: float | None = None,
        level: str = "error",
    ) -> "RuleConfigBuilder":
        """Add min and/or max constraints."""
        if min_value is not None:
            self.add_constraint(field_key, "min", min_value, level)
        if max_value is not None:
            self.add_constraint(field_key, "max", max_value, level)
        return self

    def build(self) -> RuleCatalog:
        """Return the assembled catalog."""
        return self.catalog
