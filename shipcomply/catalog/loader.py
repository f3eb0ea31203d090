"""
Default Rule Catalog Loader.

Seeds an empty store with the default rule catalog and cross-border
reference tables shipped as YAML under catalog/data/.
"""

from pathlib import Path
from typing import Any

import yaml

from shipcomply.core.models.common import display_name_for
from shipcomply.core.rules.rule_config import parse_rule_config
from shipcomply.exceptions import CatalogInitializationError
from shipcomply.observability.logger import get_logger, log_operation
from shipcomply.store.base import EntityKind, RuleStore
from shipcomply.store.repository import CrossBorderRuleRepository, RuleRepository

logger = get_logger(__name__)

DATA_DIR = Path(__file__).parent / "data"
DEFAULT_RULES_PATH = DATA_DIR / "default_rules.yaml"
DEFAULT_CROSS_BORDER_PATH = DATA_DIR / "default_cross_border.yaml"

# YAML section name -> store kind
CROSS_BORDER_SECTIONS = {
    "countryRequirements": EntityKind.COUNTRY_REQUIREMENTS,
    "restrictedItems": EntityKind.RESTRICTED_ITEMS,
    "restrictedDestinations": EntityKind.RESTRICTED_DESTINATIONS,
    "enhancedDocumentation": EntityKind.ENHANCED_DOCUMENTATION,
}


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping at the top level")
    return data


def expand_required_fields(by_context: dict[str, list[str]]) -> list[dict[str, Any]]:
    """
    Turn {context: [fieldKey, ...]} into RequiredField records.

    Display names and descriptions are derived from the field keys.
    """
    records = []
    for context, field_keys in by_context.items():
        for field_key in field_keys:
            display_name = display_name_for(field_key)
            records.append({
                "field_key": field_key,
                "display_name": display_name,
                "description": f"Required field for {context} shipping: {display_name}",
                "context": context,
            })
    return records


def cross_border_import_data(config: dict[str, Any]) -> dict[EntityKind, list[dict[str, Any]]]:
    """Map the cross-border YAML sections onto import_cross_border() input."""
    data: dict[EntityKind, list[dict[str, Any]]] = {
        EntityKind.REQUIRED_FIELDS: expand_required_fields(config.get("requiredFields") or {}),
    }
    for section, kind in CROSS_BORDER_SECTIONS.items():
        data[kind] = list(config.get(section) or [])
    return data


class DefaultCatalogLoader:
    """
    Seeds a store with the default catalog.

    initialize() is idempotent: it does nothing once any rule exists, and
    the cross-border tables are only seeded while no country requirement
    exists.
    """

    def __init__(
        self,
        store: RuleStore,
        rules_path: str | Path | None = None,
        cross_border_path: str | Path | None = None,
    ):
        self.store = store
        self.rules_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
        self.cross_border_path = Path(cross_border_path) if cross_border_path else DEFAULT_CROSS_BORDER_PATH
        self.rules = RuleRepository(store)
        self.cross_border = CrossBorderRuleRepository(store)

    def initialize(self) -> bool:
        """
        Seed the default catalog into an empty store.

        Returns:
            True if the catalog was seeded, False if rules already existed

        Raises:
            StoreUnavailable: If the store fails while seeding rules
            ValueError: If the bundled rule catalog is malformed
            CatalogInitializationError: If any cross-border kind failed to import
        """
        if self.rules.has_rules():
            logger.info("Rule catalog already present, skipping initialization")
            return False

        with log_operation("Seeding default rule catalog", logger=logger, source=str(self.rules_path)):
            catalog = parse_rule_config(_read_yaml(self.rules_path))
            seeded = [
                (EntityKind.CATEGORIES, catalog.categories),
                (EntityKind.RULES, catalog.rules),
                (EntityKind.CONSTRAINTS, catalog.constraints),
            ]
            written = []
            try:
                for kind, entities in seeded:
                    self.store.put_many(kind, entities)
                    written.append((kind, entities))
            except Exception:
                self._discard(written)
                raise

        if not self.cross_border.has_country_requirements():
            self._seed_cross_border()

        logger.info(
            "Default catalog initialized",
            extra={
                "category_count": len(catalog.categories),
                "rule_count": len(catalog.rules),
                "constraint_count": len(catalog.constraints),
            },
        )
        return True

    def _discard(self, written: list) -> None:
        """Remove entities written by a seeding attempt that failed part-way."""
        for kind, entities in reversed(written):
            for entity in entities:
                try:
                    self.store.delete(kind, entity.id)
                except Exception as e:
                    logger.error(
                        f"Could not remove partially seeded {kind.value} entry {entity.id}: {e}",
                        extra={"kind": kind.value, "entity_id": entity.id},
                    )
        if written:
            logger.warning(
                "Discarded partially seeded catalog",
                extra={"kinds": [kind.value for kind, _ in written]},
            )

    def _seed_cross_border(self) -> None:
        with log_operation("Seeding cross-border reference data", logger=logger, source=str(self.cross_border_path)):
            data = cross_border_import_data(_read_yaml(self.cross_border_path))
            summary = self.cross_border.import_cross_border(data)

        if summary.failed:
            failed = ", ".join(sorted(summary.errors))
            raise CatalogInitializationError(f"Cross-border reference import failed for: {failed}")

    def reset(self) -> bool:
        """
        Clear the store and seed the defaults again.

        Returns:
            True once the defaults are seeded
        """
        logger.warning("Resetting rule store to the default catalog")
        self.store.clear_all()
        return self.initialize()
