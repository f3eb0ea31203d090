"""
Cross-border reference snapshot.

Reads the five cross-border tables once and keeps them as an immutable
snapshot for the compliance engine. A table that cannot be read, or that is
empty, is replaced by the built-in defaults; every such substitution is
logged and recorded in `fallbacks` so degraded checking stays visible.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TypeVar

from shipcomply.core.models.common import utc_now
from shipcomply.exceptions import StoreUnavailable
from shipcomply.observability.logger import get_logger
from shipcomply.store.base import EntityKind, RuleStore
from shipcomply.store.repository import CrossBorderRuleRepository

from . import defaults

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DestinationRestriction:
    """Why a destination is restricted."""

    country_code: str
    restriction_type: str
    details: str = ""
    country_name: str = ""


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


def _default_international_fields() -> tuple[str, ...]:
    return defaults.INTERNATIONAL_REQUIRED_FIELDS


def _default_country_requirements() -> Mapping[str, tuple[str, ...]]:
    return _frozen(dict(defaults.COUNTRY_REQUIREMENTS))


def _default_restricted_items() -> Mapping[str, tuple[str, ...]]:
    return _frozen(dict(defaults.RESTRICTED_ITEMS))


def _default_restricted_destinations() -> Mapping[str, DestinationRestriction]:
    return _frozen({
        code: DestinationRestriction(code, restriction_type, details)
        for code, (restriction_type, details) in defaults.RESTRICTED_DESTINATIONS.items()
    })


def _default_enhanced_documentation() -> Mapping[str, tuple[str, ...]]:
    return _frozen({code: () for code in defaults.ENHANCED_DOCUMENTATION_COUNTRIES})


@dataclass(frozen=True)
class CrossBorderReference:
    """
    Immutable cross-border reference tables.

    Attributes:
        international_fields: Field keys required for international shipments, in order
        country_requirements: Required field keys by destination code
        restricted_items: Restricted categories by country code, "ALL" for global ones
        restricted_destinations: Restrictions by destination code
        enhanced_documentation: Required documents by destination code
        fallbacks: Tables that were replaced by built-in defaults
        loaded_at: When the snapshot was built
    """

    international_fields: tuple[str, ...] = field(default_factory=_default_international_fields)
    country_requirements: Mapping[str, tuple[str, ...]] = field(default_factory=_default_country_requirements)
    restricted_items: Mapping[str, tuple[str, ...]] = field(default_factory=_default_restricted_items)
    restricted_destinations: Mapping[str, DestinationRestriction] = field(
        default_factory=_default_restricted_destinations
    )
    enhanced_documentation: Mapping[str, tuple[str, ...]] = field(default_factory=_default_enhanced_documentation)
    fallbacks: frozenset[str] = frozenset()
    loaded_at: datetime = field(default_factory=utc_now)

    @classmethod
    def builtin(cls) -> "CrossBorderReference":
        """Snapshot made only of built-in defaults."""
        return cls(fallbacks=frozenset(kind.value for kind in _TABLES))

    @classmethod
    def load(cls, store: RuleStore) -> "CrossBorderReference":
        """
        Read every table from the store, falling back per table.

        Never raises for store failures; see `fallbacks` on the result.
        """
        repository = CrossBorderRuleRepository(store)
        fallbacks: set[str] = set()

        def read(kind: EntityKind, reader: Callable[[], T], fallback: Callable[[], T]) -> T:
            try:
                value = reader()
            except StoreUnavailable as e:
                logger.warning(
                    f"Could not read {kind.value}, using built-in defaults: {e}",
                    extra={"kind": kind.value, "fallback": True},
                )
                fallbacks.add(kind.value)
                return fallback()

            if not value:
                logger.warning(
                    f"No active {kind.value} in the store, using built-in defaults",
                    extra={"kind": kind.value, "fallback": True},
                )
                fallbacks.add(kind.value)
                return fallback()
            return value

        reference = cls(
            international_fields=read(
                EntityKind.REQUIRED_FIELDS,
                lambda: _read_international_fields(repository),
                _default_international_fields,
            ),
            country_requirements=read(
                EntityKind.COUNTRY_REQUIREMENTS,
                lambda: _read_country_requirements(repository),
                _default_country_requirements,
            ),
            restricted_items=read(
                EntityKind.RESTRICTED_ITEMS,
                lambda: _read_restricted_items(repository),
                _default_restricted_items,
            ),
            restricted_destinations=read(
                EntityKind.RESTRICTED_DESTINATIONS,
                lambda: _read_restricted_destinations(repository),
                _default_restricted_destinations,
            ),
            enhanced_documentation=read(
                EntityKind.ENHANCED_DOCUMENTATION,
                lambda: _read_enhanced_documentation(repository),
                _default_enhanced_documentation,
            ),
            fallbacks=frozenset(fallbacks),
        )

        logger.info(
            "Loaded cross-border reference data",
            extra={
                "country_requirement_count": len(reference.country_requirements),
                "restricted_destination_count": len(reference.restricted_destinations),
                "fallback_tables": sorted(reference.fallbacks),
            },
        )
        return reference

    @property
    def degraded(self) -> bool:
        return bool(self.fallbacks)

    def restricted_items_for(self, scope: str) -> tuple[str, ...]:
        """Restricted categories for a country code, or "ALL" for the global list."""
        return self.restricted_items.get(scope, ())


_TABLES = (
    EntityKind.REQUIRED_FIELDS,
    EntityKind.COUNTRY_REQUIREMENTS,
    EntityKind.RESTRICTED_ITEMS,
    EntityKind.RESTRICTED_DESTINATIONS,
    EntityKind.ENHANCED_DOCUMENTATION,
)


def _read_international_fields(repository: CrossBorderRuleRepository) -> tuple[str, ...]:
    # dict.fromkeys drops duplicate keys and keeps first-seen order
    keys = dict.fromkeys(f.field_key for f in repository.get_international_required_fields())
    return tuple(keys)


def _read_country_requirements(repository: CrossBorderRuleRepository) -> Mapping[str, tuple[str, ...]]:
    return _frozen({
        requirement.country_code: tuple(requirement.required_fields)
        for requirement in repository.get_all_country_requirements()
    })


def _read_restricted_items(repository: CrossBorderRuleRepository) -> Mapping[str, tuple[str, ...]]:
    items = repository.get_restricted_items()
    if not items:
        return _frozen({})

    by_scope: dict[str, list[str]] = {"ALL": []}
    for item in items:
        scopes = ["ALL"] if item.applies_to == "ALL" else item.applies_to
        for scope in scopes:
            by_scope.setdefault(scope, []).append(item.category)
    return _frozen({scope: tuple(categories) for scope, categories in by_scope.items()})


def _read_restricted_destinations(repository: CrossBorderRuleRepository) -> Mapping[str, DestinationRestriction]:
    return _frozen({
        destination.country_code: DestinationRestriction(
            country_code=destination.country_code,
            restriction_type=destination.restriction_type,
            details=destination.details,
            country_name=destination.country_name,
        )
        for destination in repository.get_restricted_destinations()
    })


def _read_enhanced_documentation(repository: CrossBorderRuleRepository) -> Mapping[str, tuple[str, ...]]:
    return _frozen({
        doc.country_code: tuple(doc.requirements)
        for doc in repository.get_enhanced_documentation_countries()
    })
