"""
Rule store contract.

A rule store is a key-indexed CRUD store scoped per entity kind. Hosts plug in
whatever persistence they choose; shipcomply ships an in-memory store and a
PostgreSQL store.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel

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
    ValidationConstraint,
)


class EntityKind(str, Enum):
    """Entity kinds a store keeps, named as their store collections."""

    RULES = "rules"
    CATEGORIES = "categories"
    CONSTRAINTS = "constraints"
    DEPENDENCIES = "dependencies"
    REGIONAL_RULES = "regionalRules"
    REQUIRED_FIELDS = "requiredFields"
    COUNTRY_REQUIREMENTS = "countryRequirements"
    RESTRICTED_ITEMS = "restrictedItems"
    RESTRICTED_DESTINATIONS = "restrictedDestinations"
    ENHANCED_DOCUMENTATION = "enhancedDocumentation"


MODEL_BY_KIND: dict[EntityKind, type[BaseModel]] = {
    EntityKind.RULES: ComplianceRule,
    EntityKind.CATEGORIES: RuleCategory,
    EntityKind.CONSTRAINTS: ValidationConstraint,
    EntityKind.DEPENDENCIES: RuleDependency,
    EntityKind.REGIONAL_RULES: RegionalRule,
    EntityKind.REQUIRED_FIELDS: RequiredField,
    EntityKind.COUNTRY_REQUIREMENTS: CountryRequirement,
    EntityKind.RESTRICTED_ITEMS: RestrictedItem,
    EntityKind.RESTRICTED_DESTINATIONS: RestrictedDestination,
    EntityKind.ENHANCED_DOCUMENTATION: EnhancedDocumentation,
}

# index name -> model attribute, per kind
INDEXES: dict[EntityKind, dict[str, str]] = {
    EntityKind.RULES: {
        "by-category": "category_id",
        "by-field-key": "field_key",
        "by-active": "is_active",
    },
    EntityKind.CATEGORIES: {
        "by-active": "is_active",
    },
    EntityKind.CONSTRAINTS: {
        "by-rule": "rule_id",
    },
    EntityKind.DEPENDENCIES: {
        "by-primary-rule": "primary_rule_id",
        "by-depends-on-rule": "depends_on_rule_id",
    },
    EntityKind.REGIONAL_RULES: {
        "by-rule": "base_rule_id",
        "by-region": "region",
    },
    EntityKind.REQUIRED_FIELDS: {
        "by-context": "context",
        "by-active": "is_active",
        "by-field-key": "field_key",
    },
    EntityKind.COUNTRY_REQUIREMENTS: {
        "by-country": "country_code",
        "by-active": "is_active",
    },
    EntityKind.RESTRICTED_ITEMS: {
        "by-category": "category",
        "by-active": "is_active",
        "by-severity": "severity",
    },
    EntityKind.RESTRICTED_DESTINATIONS: {
        "by-country": "country_code",
        "by-restriction-type": "restriction_type",
        "by-active": "is_active",
    },
    EntityKind.ENHANCED_DOCUMENTATION: {
        "by-country": "country_code",
        "by-active": "is_active",
    },
}


def index_attribute(kind: EntityKind, index_name: str) -> str:
    """
    Resolve an index name to the attribute it covers.

    Raises:
        ValueError: If the kind has no such index
    """
    try:
        return INDEXES[kind][index_name]
    except KeyError:
        raise ValueError(f"Unknown index '{index_name}' for {kind.value}") from None


def check_entity(kind: EntityKind, entity: BaseModel) -> None:
    """Reject entities whose type does not match the kind."""
    expected = MODEL_BY_KIND[kind]
    if not isinstance(entity, expected):
        raise TypeError(f"{kind.value} expects {expected.__name__}, got {type(entity).__name__}")


class RuleStore(ABC):
    """
    Abstract CRUD + indexed lookup contract.

    Every operation may raise StoreUnavailable. Writes across different kinds
    are not atomic; put_many is atomic within one kind.
    """

    @abstractmethod
    def get_all(self, kind: EntityKind) -> list[Any]:
        """Return every entity of a kind."""

    @abstractmethod
    def get_by_id(self, kind: EntityKind, entity_id: str) -> Any | None:
        """Return one entity, or None if absent."""

    @abstractmethod
    def get_by_index(self, kind: EntityKind, index_name: str, value: Any) -> list[Any]:
        """Return entities whose indexed attribute equals value."""

    @abstractmethod
    def put(self, kind: EntityKind, entity: BaseModel) -> None:
        """Insert or replace an entity keyed by its id."""

    @abstractmethod
    def put_many(self, kind: EntityKind, entities: list[BaseModel]) -> None:
        """Insert or replace several entities of one kind, all or nothing."""

    @abstractmethod
    def delete(self, kind: EntityKind, entity_id: str) -> None:
        """Hard-delete an entity; deleting an absent id is a no-op."""

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every entity of every kind."""

    def close(self) -> None:
        """Release resources held by the store."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
