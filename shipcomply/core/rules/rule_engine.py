"""
Field Validation Engine.

Evaluates shipment field values against their ComplianceRule definitions:
required-ness, the validation pattern, every active constraint and the
rule's named transform. Violations are returned as findings, never raised.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from shipcomply.core.models import ComplianceRule, ValidationConstraint, ValidationFinding
from shipcomply.core.transforms import apply_transform
from shipcomply.core.validators import (
    BaseValidator,
    CustomConstraintRegistry,
    CustomValidator,
    EqualValidator,
    RangeValidator,
    RegexValidator,
    RequiredFieldValidator,
    ValidationError,
)
from shipcomply.exceptions import InvalidRuleDefinition
from shipcomply.observability.logger import get_logger

from .snapshot import ResolvedRule, RuleSnapshot, compile_constraint_value, compile_rule_pattern

logger = get_logger(__name__)


@dataclass
class FieldResult:
    """Findings for one field plus its transform-normalized value."""

    findings: list[ValidationFinding] = field(default_factory=list)
    normalized_value: str = ""

    @property
    def passed(self) -> bool:
        return all(f.level != "error" for f in self.findings)


@dataclass
class ShipmentValidation:
    """Field-engine outcome for a whole shipment."""

    findings: list[ValidationFinding] = field(default_factory=list)
    normalized_fields: dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return all(f.level != "error" for f in self.findings)


class FieldValidationEngine:
    """
    Applies rules and constraints to field values.

    Bound to an optional RuleSnapshot: compiled patterns and constraint values
    come from the snapshot when the rule belongs to it, and are compiled on
    demand otherwise.
    """

    VALIDATOR_REGISTRY: dict[str, type[BaseValidator]] = {
        "min": RangeValidator,
        "max": RangeValidator,
        "equal": EqualValidator,
        "pattern": RegexValidator,
        "custom": CustomValidator,
    }

    def __init__(
        self,
        snapshot: RuleSnapshot | None = None,
        custom_constraints: CustomConstraintRegistry | None = None,
    ):
        self.snapshot = snapshot or RuleSnapshot()
        self.custom_constraints = custom_constraints or CustomConstraintRegistry()

    def validate_field(
        self,
        value: str | None,
        rule: ComplianceRule,
        constraints: Iterable[ValidationConstraint] = (),
        record: Mapping[str, str] | None = None,
    ) -> list[ValidationFinding]:
        """
        Validate one value against a rule and its constraints.

        Returns:
            Ordered findings; an empty list means the value is compliant
        """
        return self.evaluate_field(value, rule, constraints, record).findings

    def evaluate_field(
        self,
        value: str | None,
        rule: ComplianceRule,
        constraints: Iterable[ValidationConstraint] = (),
        record: Mapping[str, str] | None = None,
    ) -> FieldResult:
        """
        Validate one value and return findings with the normalized value.

        Args:
            value: Value as supplied by the shipment
            rule: Rule to evaluate
            constraints: Constraints attached to the rule; inactive ones are skipped
            record: Whole shipment field map, passed to custom handlers
        """
        problems: list[InvalidRuleDefinition] = []
        pattern = self.snapshot.patterns.get(rule.id)
        cached_source = pattern.pattern if pattern is not None else ""
        if rule.id not in self.snapshot.patterns or cached_source != rule.validation_pattern:
            try:
                pattern = compile_rule_pattern(rule.id, rule.validation_pattern)
            except InvalidRuleDefinition as e:
                logger.warning(f"Skipping invalid rule definition: {e}", extra={"rule_id": rule.id})
                pattern = None
                problems.append(e)

        resolved = ResolvedRule(
            rule=rule,
            pattern=pattern,
            constraints=tuple(constraints),
            problems=tuple(problems),
        )
        return self._evaluate(value, resolved, record or {})

    def validate_shipment(self, fields: Mapping[str, str], region: str | None = None) -> ShipmentValidation:
        """
        Validate every field of a shipment against the bound snapshot.

        Rules run in category-priority, then rule-priority order. Regional
        overrides for region are applied. Fields without any rule are
        reported as info findings.

        Args:
            fields: Shipment field map
            region: Normalized destination country code, if known
        """
        result = ShipmentValidation()
        seen: set[str] = set()

        for rule in self.snapshot.rules:
            if rule.field_key in seen:
                continue
            seen.add(rule.field_key)

            resolved = self.snapshot.resolve(rule, region)
            field_result = self._evaluate(fields.get(rule.field_key), resolved, fields)
            result.findings.extend(field_result.findings)
            if rule.field_key in fields:
                result.normalized_fields[rule.field_key] = field_result.normalized_value

        for key, value in fields.items():
            if key in seen:
                continue
            result.normalized_fields[key] = value
            result.findings.append(
                ValidationFinding(
                    field_key=key,
                    level="info",
                    kind="unknown_field",
                    message=f"No validation rules found for field: {key}",
                    value=value,
                )
            )

        return result

    def _evaluate(self, value: str | None, resolved: ResolvedRule, record: Mapping[str, str]) -> FieldResult:
        rule = resolved.rule
        original = value if value is not None else ""
        findings: list[ValidationFinding] = [
            ValidationFinding(
                field_key=rule.field_key,
                level="warning",
                kind="configuration",
                message=f"{rule.label} could not be fully validated: {problem.detail}",
                value=original,
                rule_id=rule.id,
            )
            for problem in resolved.problems
        ]

        constraints = [c for c in resolved.constraints if c.is_active]

        if original.strip() == "":
            if rule.is_required:
                try:
                    RequiredFieldValidator(rule.field_key, {"display_name": rule.label}).validate(original, record)
                except ValidationError as e:
                    findings.append(
                        ValidationFinding(
                            field_key=rule.field_key,
                            level="error",
                            kind="required",
                            message=e.message,
                            value=original,
                            rule_id=rule.id,
                        )
                    )
            # Only custom handlers can say anything about a blank value
            constraints = [c for c in constraints if c.constraint_type == "custom"]
            findings.extend(self._check_constraints(original, original, rule, constraints, record))
            return FieldResult(findings=findings, normalized_value=original)

        normalized = apply_transform(rule.transform, original)

        if resolved.pattern is not None:
            validator = RegexValidator(
                rule.field_key,
                {
                    "pattern": resolved.pattern,
                    "message": rule.validation_message,
                    "display_value": original,
                },
            )
            try:
                validator.validate(normalized, record)
            except ValidationError as e:
                findings.append(
                    ValidationFinding(
                        field_key=rule.field_key,
                        level="error",
                        kind="pattern",
                        message=e.message,
                        value=original,
                        rule_id=rule.id,
                    )
                )

        findings.extend(self._check_constraints(original, normalized, rule, constraints, record))
        return FieldResult(findings=findings, normalized_value=normalized)

    def _check_constraints(
        self,
        original: str,
        normalized: str,
        rule: ComplianceRule,
        constraints: list[ValidationConstraint],
        record: Mapping[str, str],
    ) -> list[ValidationFinding]:
        findings = []

        for constraint in constraints:
            try:
                validator = self._build_validator(rule, constraint)
            except InvalidRuleDefinition as e:
                logger.warning(f"Skipping invalid constraint: {e}", extra={"constraint_id": constraint.id})
                findings.append(
                    ValidationFinding(
                        field_key=rule.field_key,
                        level="warning",
                        kind="configuration",
                        message=f"{rule.label} could not be fully validated: {e.detail}",
                        value=original,
                        rule_id=rule.id,
                        constraint_id=constraint.id,
                    )
                )
                continue

            if validator is None:
                handler_name = constraint.constraint_value
                logger.warning(
                    f"No handler registered for custom constraint '{handler_name}'",
                    extra={"constraint_id": constraint.id, "rule_id": rule.id},
                )
                findings.append(
                    ValidationFinding(
                        field_key=rule.field_key,
                        level="info",
                        kind="constraint",
                        message=f"Custom constraint '{handler_name}' was not evaluated: no handler registered",
                        value=original,
                        rule_id=rule.id,
                        constraint_id=constraint.id,
                    )
                )
                continue

            try:
                validator.validate(normalized, record)
            except ValidationError as e:
                findings.append(
                    ValidationFinding(
                        field_key=rule.field_key,
                        level=constraint.validation_level,
                        kind="constraint",
                        message=e.message,
                        value=original,
                        rule_id=rule.id,
                        constraint_id=constraint.id,
                    )
                )

        return findings

    def _build_validator(self, rule: ComplianceRule, constraint: ValidationConstraint) -> BaseValidator | None:
        """
        Instantiate the validator for a constraint.

        Returns:
            The validator, or None for a custom constraint with no registered handler

        Raises:
            InvalidRuleDefinition: If the constraint value cannot be compiled
        """
        if constraint in self.snapshot.constraints.get(constraint.rule_id, ()):
            compiled = self.snapshot.constraint_values[constraint.id]
        else:
            compiled = compile_constraint_value(constraint)

        kind = constraint.constraint_type
        message = constraint.error_message or None
        parameters: dict[str, Any]

        if kind == "min":
            parameters = {"min": compiled, "message": message}
        elif kind == "max":
            parameters = {"max": compiled, "message": message}
        elif kind == "equal":
            parameters = {"expected": compiled, "message": message}
        elif kind == "pattern":
            parameters = {"pattern": compiled, "message": message}
        else:
            handler = self.custom_constraints.get(constraint.constraint_value)
            if handler is None:
                return None
            parameters = {"validator_func": handler, "error_message": message}

        try:
            return self.VALIDATOR_REGISTRY[kind](rule.field_key, parameters)
        except ValueError as e:
            raise InvalidRuleDefinition(rule.id, f"{kind} constraint {constraint.id}: {e}") from e
