"""
Repositories over a RuleStore.

RuleRepository manages rules, categories, constraints, dependencies and
regional overrides. CrossBorderRuleRepository manages the cross-border
reference tables and their bulk import. Both replace whole records on update
and raise NotFound instead of upserting a missing id.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from shipcomply.core.models import (
    ComplianceRule,
    CountryRequirement,
    EnhancedDocumentation,
    RegionalRule,
    RequiredField,
    RestrictedDestination,
    RestrictedItem,
    RuleCategory,
    RuleDependency,
    ShippingContext,
    ValidationConstraint,
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
from shipcomply.core.models.common import utc_now
from shipcomply.exceptions import CategoryInUseError, NotFound, StoreUnavailable
from shipcomply.observability.logger import get_logger

from .base import EntityKind, RuleStore

logger = get_logger(__name__)

FACTORY_BY_KIND: dict[EntityKind, Callable[..., BaseModel]] = {
    EntityKind.RULES: create_compliance_rule,
    EntityKind.CATEGORIES: create_rule_category,
    EntityKind.CONSTRAINTS: create_validation_constraint,
    EntityKind.DEPENDENCIES: create_rule_dependency,
    EntityKind.REGIONAL_RULES: create_regional_rule,
    EntityKind.REQUIRED_FIELDS: create_required_field,
    EntityKind.COUNTRY_REQUIREMENTS: create_country_requirement,
    EntityKind.RESTRICTED_ITEMS: create_restricted_item,
    EntityKind.RESTRICTED_DESTINATIONS: create_restricted_destination,
    EntityKind.ENHANCED_DOCUMENTATION: create_enhanced_documentation,
}

CROSS_BORDER_KINDS = (
    EntityKind.REQUIRED_FIELDS,
    EntityKind.COUNTRY_REQUIREMENTS,
    EntityKind.RESTRICTED_ITEMS,
    EntityKind.RESTRICTED_DESTINATIONS,
    EntityKind.ENHANCED_DOCUMENTATION,
)


class _Repository:
    """Generic add / replace-on-update / delete over one store."""

    def __init__(self, store: RuleStore):
        self.store = store

    def add(self, kind: EntityKind, data: Mapping[str, Any] | None = None, **fields: Any) -> Any:
        entity = FACTORY_BY_KIND[kind](data, **fields)
        self.store.put(kind, entity)
        return entity

    def get(self, kind: EntityKind, entity_id: str) -> Any | None:
        return self.store.get_by_id(kind, entity_id)

    def update(self, kind: EntityKind, entity_id: str, **changes: Any) -> Any:
        """
        Replace a record with a copy that carries the given changes.

        Raises:
            NotFound: If no record has this id
        """
        existing = self.store.get_by_id(kind, entity_id)
        if existing is None:
            raise NotFound(kind.value, entity_id)

        payload = existing.model_dump()
        payload.update(changes)
        payload["id"] = entity_id
        if "updated_at" in payload:
            # Never move updated_at backwards, even with a skewed clock
            payload["updated_at"] = max(utc_now(), existing.updated_at)

        updated = type(existing).model_validate(payload)
        self.store.put(kind, updated)
        return updated

    def delete(self, kind: EntityKind, entity_id: str) -> None:
        """
        Hard-delete a record.

        Raises:
            NotFound: If no record has this id
        """
        if self.store.get_by_id(kind, entity_id) is None:
            raise NotFound(kind.value, entity_id)
        self.store.delete(kind, entity_id)


class RuleRepository(_Repository):
    """Rules, categories, constraints, dependencies and regional overrides."""

    # Rules

    def get_all_rules(self) -> list[ComplianceRule]:
        return self.store.get_all(EntityKind.RULES)

    def has_rules(self) -> bool:
        return len(self.get_all_rules()) > 0

    def get_active_rules(self) -> list[ComplianceRule]:
        return self.store.get_by_index(EntityKind.RULES, "by-active", True)

    def get_rule_by_id(self, rule_id: str) -> ComplianceRule | None:
        return self.store.get_by_id(EntityKind.RULES, rule_id)

    def get_rules_by_category(self, category_id: str) -> list[ComplianceRule]:
        return self.store.get_by_index(EntityKind.RULES, "by-category", category_id)

    def get_rule_by_field_key(self, field_key: str) -> ComplianceRule | None:
        """First active rule for a field key, else the first inactive one."""
        rules = self.store.get_by_index(EntityKind.RULES, "by-field-key", field_key)
        active = [rule for rule in rules if rule.is_active]
        candidates = active or rules
        return candidates[0] if candidates else None

    def add_rule(self, data: Mapping[str, Any] | None = None, **fields: Any) -> ComplianceRule:
        return self.add(EntityKind.RULES, data, **fields)

    def update_rule(self, rule_id: str, **changes: Any) -> ComplianceRule:
        return self.update(EntityKind.RULES, rule_id, **changes)

    def delete_rule(self, rule_id: str) -> None:
        self.delete(EntityKind.RULES, rule_id)

    def import_rules(self, rules: list[ComplianceRule]) -> None:
        self.store.put_many(EntityKind.RULES, rules)

    # Categories

    def get_all_categories(self) -> list[RuleCategory]:
        return sorted(self.store.get_all(EntityKind.CATEGORIES), key=lambda c: c.priority)

    def get_active_categories(self) -> list[RuleCategory]:
        categories = self.store.get_by_index(EntityKind.CATEGORIES, "by-active", True)
        return sorted(categories, key=lambda c: c.priority)

    def get_category_by_id(self, category_id: str) -> RuleCategory | None:
        return self.store.get_by_id(EntityKind.CATEGORIES, category_id)

    def add_category(self, data: Mapping[str, Any] | None = None, **fields: Any) -> RuleCategory:
        return self.add(EntityKind.CATEGORIES, data, **fields)

    def update_category(self, category_id: str, **changes: Any) -> RuleCategory:
        return self.update(EntityKind.CATEGORIES, category_id, **changes)

    def delete_category(self, category_id: str) -> None:
        """
        Delete a category that no rule references.

        Raises:
            NotFound: If the category does not exist
            CategoryInUseError: If any rule still references it
        """
        if self.get_category_by_id(category_id) is None:
            raise NotFound(EntityKind.CATEGORIES.value, category_id)
        referencing = self.get_rules_by_category(category_id)
        if referencing:
            raise CategoryInUseError(category_id, [rule.id for rule in referencing])
        self.store.delete(EntityKind.CATEGORIES, category_id)

    def import_categories(self, categories: list[RuleCategory]) -> None:
        self.store.put_many(EntityKind.CATEGORIES, categories)

    # Constraints

    def get_constraints_by_rule_id(self, rule_id: str) -> list[ValidationConstraint]:
        return self.store.get_by_index(EntityKind.CONSTRAINTS, "by-rule", rule_id)

    def add_constraint(self, data: Mapping[str, Any] | None = None, **fields: Any) -> ValidationConstraint:
        return self.add(EntityKind.CONSTRAINTS, data, **fields)

    def update_constraint(self, constraint_id: str, **changes: Any) -> ValidationConstraint:
        return self.update(EntityKind.CONSTRAINTS, constraint_id, **changes)

    def delete_constraint(self, constraint_id: str) -> None:
        self.delete(EntityKind.CONSTRAINTS, constraint_id)

    # Dependencies and regional overrides

    def get_dependencies_by_rule_id(self, rule_id: str) -> list[RuleDependency]:
        return self.store.get_by_index(EntityKind.DEPENDENCIES, "by-primary-rule", rule_id)

    def add_dependency(self, data: Mapping[str, Any] | None = None, **fields: Any) -> RuleDependency:
        return self.add(EntityKind.DEPENDENCIES, data, **fields)

    def get_regional_rules_by_rule_id(self, rule_id: str) -> list[RegionalRule]:
        return self.store.get_by_index(EntityKind.REGIONAL_RULES, "by-rule", rule_id)

    def get_regional_rules_by_region(self, region: str) -> list[RegionalRule]:
        return self.store.get_by_index(EntityKind.REGIONAL_RULES, "by-region", region.upper())

    def add_regional_rule(self, data: Mapping[str, Any] | None = None, **fields: Any) -> RegionalRule:
        return self.add(EntityKind.REGIONAL_RULES, data, **fields)

    def clear_all(self) -> None:
        logger.info("Clearing all rules and related data")
        self.store.clear_all()


@dataclass
class ImportSummary:
    """Per-kind outcome of a bulk import."""

    imported: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


class CrossBorderRuleRepository(_Repository):
    """Cross-border reference tables."""

    def get_required_fields_by_context(self, context: ShippingContext) -> list[RequiredField]:
        return self.store.get_by_index(EntityKind.REQUIRED_FIELDS, "by-context", context)

    def get_international_required_fields(self) -> list[RequiredField]:
        fields = self.get_required_fields_by_context("international")
        return [f for f in fields if f.is_active]

    def get_country_requirements(self, country_code: str) -> CountryRequirement | None:
        requirements = self.store.get_by_index(
            EntityKind.COUNTRY_REQUIREMENTS, "by-country", country_code.upper()
        )
        return next((r for r in requirements if r.is_active), None)

    def get_all_country_requirements(self) -> list[CountryRequirement]:
        return self.store.get_by_index(EntityKind.COUNTRY_REQUIREMENTS, "by-active", True)

    def get_restricted_items(self, country_code: str | None = None) -> list[RestrictedItem]:
        """Active restricted items, optionally only those that apply to a country."""
        items = self.store.get_by_index(EntityKind.RESTRICTED_ITEMS, "by-active", True)
        if country_code is None:
            return items
        code = country_code.upper()
        return [item for item in items if item.applies_to_country(code)]

    def get_restricted_destinations(self) -> list[RestrictedDestination]:
        return self.store.get_by_index(EntityKind.RESTRICTED_DESTINATIONS, "by-active", True)

    def is_restricted_destination(self, country_code: str) -> RestrictedDestination | None:
        destinations = self.store.get_by_index(
            EntityKind.RESTRICTED_DESTINATIONS, "by-country", country_code.upper()
        )
        return next((d for d in destinations if d.is_active), None)

    def get_enhanced_documentation_countries(self) -> list[EnhancedDocumentation]:
        return self.store.get_by_index(EntityKind.ENHANCED_DOCUMENTATION, "by-active", True)

    def get_enhanced_documentation_for_country(self, country_code: str) -> EnhancedDocumentation | None:
        docs = self.store.get_by_index(
            EntityKind.ENHANCED_DOCUMENTATION, "by-country", country_code.upper()
        )
        return next((d for d in docs if d.is_active), None)

    def has_country_requirements(self) -> bool:
        return len(self.store.get_all(EntityKind.COUNTRY_REQUIREMENTS)) > 0

    def import_cross_border(
        self, data: Mapping[EntityKind | str, list[Mapping[str, Any]]]
    ) -> ImportSummary:
        """
        Bulk-import partial records for each cross-border kind.

        Each kind is all-or-nothing: every record is built and validated
        before a single batched write. Kinds are independent, so a failure in
        one is recorded in the summary and the remaining kinds still import.

        Args:
            data: Partial records keyed by kind (EntityKind or its value)

        Returns:
            ImportSummary with per-kind counts and errors
        """
        summary = ImportSummary()

        for raw_kind, records in data.items():
            kind = EntityKind(raw_kind)
            if kind not in CROSS_BORDER_KINDS:
                raise ValueError(f"{kind.value} is not a cross-border reference kind")

            factory = FACTORY_BY_KIND[kind]
            try:
                entities = [factory(record) for record in records]
                self.store.put_many(kind, entities)
            except (ValidationError, StoreUnavailable) as e:
                summary.errors[kind.value] = str(e)
                logger.error(
                    f"Import of {kind.value} failed; no {kind.value} records were written",
                    extra={"kind": kind.value, "record_count": len(records), "error_type": type(e).__name__},
                )
                continue

            summary.imported[kind.value] = len(entities)
            logger.info(
                f"Imported {len(entities)} {kind.value} records",
                extra={"kind": kind.value, "record_count": len(entities)},
            )

        return summary
