"""
Immutable, pre-compiled view of the rule catalog.

A RuleSnapshot is built once from the store and shared by every evaluation
until the next explicit refresh. Patterns and numeric constraint values are
compiled here, keyed by rule, regional rule or constraint id. Definitions that
fail to compile are kept as InvalidRuleDefinition problems instead of
failing the build.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from re import Pattern
from types import MappingProxyType

from shipcomply.core.models import (
    ComplianceRule,
    RegionalRule,
    RuleCategory,
    ValidationConstraint,
)
from shipcomply.core.models.common import utc_now
from shipcomply.exceptions import InvalidRuleDefinition
from shipcomply.observability.logger import get_logger
from shipcomply.store.base import EntityKind, RuleStore

logger = get_logger(__name__)

ConstraintValue = float | Pattern | str


@lru_cache(maxsize=1024)
def compile_pattern(source: str) -> Pattern:
    """Compile a regex source string, cached by source."""
    return re.compile(source)


def compile_rule_pattern(owner_id: str, source: str) -> Pattern | None:
    """
    Compile a rule's validation pattern.

    Returns:
        The compiled pattern, or None for an empty source

    Raises:
        InvalidRuleDefinition: If the source is not a valid regex
    """
    if not source:
        return None
    try:
        return compile_pattern(source)
    except re.error as e:
        raise InvalidRuleDefinition(owner_id, f"invalid validation pattern {source!r}: {e}") from e


def compile_constraint_value(constraint: ValidationConstraint) -> ConstraintValue:
    """
    Read a constraint's string-encoded value according to its type.

    min/max -> float, pattern -> compiled Pattern, equal/custom -> str

    Raises:
        InvalidRuleDefinition: If the value cannot be read for the type
    """
    kind = constraint.constraint_type
    raw = constraint.constraint_value

    if kind in ("min", "max"):
        try:
            return float(raw)
        except ValueError as e:
            raise InvalidRuleDefinition(
                constraint.rule_id, f"{kind} constraint {constraint.id} has non-numeric value {raw!r}"
            ) from e

    if kind == "pattern":
        try:
            return compile_pattern(raw)
        except re.error as e:
            raise InvalidRuleDefinition(
                constraint.rule_id, f"pattern constraint {constraint.id} has invalid regex {raw!r}: {e}"
            ) from e

    return raw


@dataclass(frozen=True)
class ResolvedRule:
    """A rule with regional overrides applied, ready to evaluate."""

    rule: ComplianceRule
    pattern: Pattern | None
    constraints: tuple[ValidationConstraint, ...]
    problems: tuple[InvalidRuleDefinition, ...] = ()


@dataclass(frozen=True)
class RuleSnapshot:
    """
    Read-only rule catalog for evaluation.

    Attributes:
        rules: Active rules in category-priority, then rule-priority order
        categories: Categories by id
        constraints: Active constraints by rule id
        regional_rules: Active regional overrides by (base rule id, region)
        patterns: Compiled patterns by rule id and regional rule id
        constraint_values: Compiled constraint values by constraint id
        problems: Compile problems by rule id
        built_at: When the snapshot was built
    """

    rules: tuple[ComplianceRule, ...] = ()
    categories: Mapping[str, RuleCategory] = field(default_factory=lambda: MappingProxyType({}))
    constraints: Mapping[str, tuple[ValidationConstraint, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    regional_rules: Mapping[tuple[str, str], RegionalRule] = field(
        default_factory=lambda: MappingProxyType({})
    )
    patterns: Mapping[str, Pattern | None] = field(default_factory=lambda: MappingProxyType({}))
    constraint_values: Mapping[str, ConstraintValue] = field(default_factory=lambda: MappingProxyType({}))
    problems: Mapping[str, tuple[InvalidRuleDefinition, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    built_at: datetime = field(default_factory=utc_now)

    @classmethod
    def build(
        cls,
        rules: Iterable[ComplianceRule],
        categories: Iterable[RuleCategory] = (),
        constraints: Iterable[ValidationConstraint] = (),
        regional_rules: Iterable[RegionalRule] = (),
    ) -> "RuleSnapshot":
        """
        Compile a snapshot from catalog entities.

        Inactive rules, constraints and overrides are dropped, as are rules
        whose category exists but is inactive. Rules pointing at an unknown
        category sort after every known category.
        """
        category_map = {c.id: c for c in categories}

        def in_active_category(rule: ComplianceRule) -> bool:
            category = category_map.get(rule.category_id)
            return category is None or category.is_active

        def order_key(rule: ComplianceRule) -> tuple[int, int, int]:
            category = category_map.get(rule.category_id)
            if category is None:
                return (1, 0, rule.priority)
            return (0, category.priority, rule.priority)

        active_rules = sorted(
            (r for r in rules if r.is_active and in_active_category(r)),
            key=order_key,
        )
        rule_ids = {r.id for r in active_rules}

        problems: dict[str, list[InvalidRuleDefinition]] = {}
        patterns: dict[str, Pattern | None] = {}

        def record_problem(rule_id: str, problem: InvalidRuleDefinition) -> None:
            problems.setdefault(rule_id, []).append(problem)
            logger.warning(
                f"Skipping invalid rule definition: {problem}",
                extra={"rule_id": rule_id},
            )

        for rule in active_rules:
            try:
                patterns[rule.id] = compile_rule_pattern(rule.id, rule.validation_pattern)
            except InvalidRuleDefinition as e:
                patterns[rule.id] = None
                record_problem(rule.id, e)

        constraint_map: dict[str, list[ValidationConstraint]] = {}
        constraint_values: dict[str, ConstraintValue] = {}
        for constraint in constraints:
            if not constraint.is_active or constraint.rule_id not in rule_ids:
                continue
            try:
                constraint_values[constraint.id] = compile_constraint_value(constraint)
            except InvalidRuleDefinition as e:
                record_problem(constraint.rule_id, e)
                continue
            constraint_map.setdefault(constraint.rule_id, []).append(constraint)

        regional_map: dict[tuple[str, str], RegionalRule] = {}
        for regional in regional_rules:
            if not regional.is_active or regional.base_rule_id not in rule_ids:
                continue
            if regional.validation_pattern:
                try:
                    patterns[regional.id] = compile_rule_pattern(regional.id, regional.validation_pattern)
                except InvalidRuleDefinition as e:
                    record_problem(regional.base_rule_id, e)
                    continue
            regional_map[(regional.base_rule_id, regional.region.upper())] = regional

        return cls(
            rules=tuple(active_rules),
            categories=MappingProxyType(category_map),
            constraints=MappingProxyType({k: tuple(v) for k, v in constraint_map.items()}),
            regional_rules=MappingProxyType(regional_map),
            patterns=MappingProxyType(patterns),
            constraint_values=MappingProxyType(constraint_values),
            problems=MappingProxyType({k: tuple(v) for k, v in problems.items()}),
        )

    @classmethod
    def load(cls, store: RuleStore) -> "RuleSnapshot":
        """
        Read the rule catalog from a store and compile it.

        Raises:
            StoreUnavailable: If any read fails; rule data is authoritative
                and is never substituted
        """
        snapshot = cls.build(
            rules=store.get_all(EntityKind.RULES),
            categories=store.get_all(EntityKind.CATEGORIES),
            constraints=store.get_all(EntityKind.CONSTRAINTS),
            regional_rules=store.get_all(EntityKind.REGIONAL_RULES),
        )
        logger.info(
            f"Built rule snapshot with {len(snapshot.rules)} active rules",
            extra={"rule_count": len(snapshot.rules), "problem_count": len(snapshot.problems)},
        )
        return snapshot

    def rule_for(self, field_key: str) -> ComplianceRule | None:
        """First active rule for a field key in evaluation order."""
        return next((r for r in self.rules if r.field_key == field_key), None)

    @property
    def field_keys(self) -> set[str]:
        return {r.field_key for r in self.rules}

    def resolve(self, rule: ComplianceRule, region: str | None = None) -> ResolvedRule:
        """
        Apply the regional override for region, if any, and attach the
        compiled pattern and constraints.
        """
        pattern = self.patterns.get(rule.id)
        effective = rule

        regional = self.regional_rules.get((rule.id, region.upper())) if region else None
        if regional is not None:
            overrides = {}
            if regional.validation_pattern:
                overrides["validation_pattern"] = regional.validation_pattern
                pattern = self.patterns.get(regional.id)
            if regional.validation_message:
                overrides["validation_message"] = regional.validation_message
            if regional.is_required is not None:
                overrides["is_required"] = regional.is_required
            effective = rule.model_copy(update=overrides)

        return ResolvedRule(
            rule=effective,
            pattern=pattern,
            constraints=self.constraints.get(rule.id, ()),
            problems=self.problems.get(rule.id, ()),
        )
