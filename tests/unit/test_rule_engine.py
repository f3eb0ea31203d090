"""
Unit tests for the Field Validation Engine and rule snapshots.

Includes property-based testing with hypothesis for required fields.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from shipcomply.core.models import (
    create_compliance_rule,
    create_regional_rule,
    create_rule_category,
    create_validation_constraint,
)
from shipcomply.core.rules import FieldValidationEngine, RuleConfigBuilder, RuleSnapshot
from shipcomply.core.validators import CustomConstraintRegistry


def snapshot_of(catalog, regional_rules=()):
    return RuleSnapshot.build(catalog.rules, catalog.categories, catalog.constraints, regional_rules)


class TestWeightRule:
    """Tests for a rule with a pattern, a transform and range constraints"""

    @pytest.fixture
    def engine(self, weight_catalog):
        return FieldValidationEngine(snapshot_of(weight_catalog))

    def test_valid_weight(self, engine):
        result = engine.validate_shipment({"weight": "2.5 kg"})
        assert result.findings == []
        assert result.passed

    def test_below_minimum_is_error(self, engine):
        result = engine.validate_shipment({"weight": "0.05 kg"})

        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.level == "error"
        assert finding.kind == "constraint"
        assert finding.message == "Weight must be greater than 0.1"
        assert finding.value == "0.05 kg"
        assert not result.passed

    def test_above_maximum_is_warning(self, engine):
        result = engine.validate_shipment({"weight": "2000 kg"})

        assert [(f.level, f.kind) for f in result.findings] == [("warning", "constraint")]
        assert result.passed

    def test_missing_required_value(self, engine):
        """Only the required finding is reported for an empty value"""
        result = engine.validate_shipment({"weight": "  "})

        assert len(result.findings) == 1
        assert result.findings[0].kind == "required"
        assert result.findings[0].message == "Weight is required"

    def test_absent_required_field(self, engine):
        result = engine.validate_shipment({})
        assert [f.kind for f in result.findings] == ["required"]

    def test_pattern_runs_on_normalized_value(self, engine):
        result = engine.validate_shipment({"weight": "2.5KG"})

        assert result.findings == []
        assert result.normalized_fields["weight"] == "2.5 kg"

    def test_pattern_and_constraint_both_reported(self, engine):
        result = engine.validate_shipment({"weight": "heavy"})

        # Each range constraint reports at its own level
        assert [(f.kind, f.level) for f in result.findings] == [
            ("pattern", "error"),
            ("constraint", "error"),
            ("constraint", "warning"),
        ]
        assert result.findings[0].message == "Weight must be a number followed by a unit"
        assert result.findings[1].message == "Value 'heavy' is not numeric"


class TestValidateField:
    """Tests for validate_field without a snapshot"""

    def test_optional_empty_field_has_no_findings(self):
        rule = create_compliance_rule(category_id="c", field_key="notes", validation_pattern=r"^\w+$")
        assert FieldValidationEngine().validate_field("", rule) == []

    def test_default_pattern_message_quotes_original_value(self):
        rule = create_compliance_rule(
            category_id="c",
            field_key="trackingNumber",
            validation_pattern=r"^[A-Z0-9]{8,}$",
            transform="uppercase_no_spaces",
        )
        findings = FieldValidationEngine().validate_field("ab 12", rule)

        assert len(findings) == 1
        assert "'ab 12'" in findings[0].message

    def test_equal_and_pattern_constraints(self):
        rule = create_compliance_rule(category_id="c", field_key="declaredValueCurrency")
        constraints = [
            create_validation_constraint(rule_id=rule.id, constraint_type="equal", constraint_value="USD"),
            create_validation_constraint(
                rule_id=rule.id, constraint_type="pattern", constraint_value=r"^[A-Z]{3}$",
                validation_level="warning", error_message="Use an ISO code",
            ),
        ]

        findings = FieldValidationEngine().validate_field("eur", rule, constraints)

        assert [(f.level, f.kind) for f in findings] == [("error", "constraint"), ("warning", "constraint")]
        assert findings[1].message == "Use an ISO code"

    def test_inactive_constraint_is_skipped(self):
        rule = create_compliance_rule(category_id="c", field_key="weight")
        constraint = create_validation_constraint(
            rule_id=rule.id, constraint_type="min", constraint_value="5", is_active=False
        )
        assert FieldValidationEngine().validate_field("1", rule, [constraint]) == []

    def test_invalid_pattern_becomes_configuration_warning(self):
        rule = create_compliance_rule(category_id="c", field_key="code", validation_pattern="[unclosed")
        findings = FieldValidationEngine().validate_field("abc", rule)

        assert len(findings) == 1
        assert findings[0].level == "warning"
        assert findings[0].kind == "configuration"

    def test_non_numeric_constraint_value(self):
        rule = create_compliance_rule(category_id="c", field_key="weight")
        constraint = create_validation_constraint(rule_id=rule.id, constraint_type="min", constraint_value="abc")

        findings = FieldValidationEngine().validate_field("5", rule, [constraint])

        assert [(f.level, f.kind) for f in findings] == [("warning", "configuration")]

    def test_unregistered_custom_handler(self):
        rule = create_compliance_rule(category_id="c", field_key="hsTariffNumber")
        constraint = create_validation_constraint(
            rule_id=rule.id, constraint_type="custom", constraint_value="hs_lookup"
        )

        findings = FieldValidationEngine().validate_field("8471.30", rule, [constraint])

        assert len(findings) == 1
        assert findings[0].level == "info"
        assert "hs_lookup" in findings[0].message

    def test_registered_custom_handler(self):
        def known_code(value, record):
            if value not in ("8471.30", "6109.10"):
                raise ValueError(f"unknown HS code {value}")

        registry = CustomConstraintRegistry({"hs_lookup": known_code})
        rule = create_compliance_rule(category_id="c", field_key="hsTariffNumber")
        constraint = create_validation_constraint(
            rule_id=rule.id, constraint_type="custom", constraint_value="hs_lookup",
            validation_level="warning",
        )
        engine = FieldValidationEngine(custom_constraints=registry)

        assert engine.validate_field("8471.30", rule, [constraint]) == []
        findings = engine.validate_field("0000.00", rule, [constraint])
        assert findings[0].level == "warning"
        assert "unknown HS code" in findings[0].message

    def test_custom_handler_runs_on_empty_value(self):
        calls = []
        registry = CustomConstraintRegistry({"track": lambda value, record: calls.append(value)})
        rule = create_compliance_rule(category_id="c", field_key="notes")
        constraint = create_validation_constraint(rule_id=rule.id, constraint_type="custom", constraint_value="track")

        FieldValidationEngine(custom_constraints=registry).validate_field("", rule, [constraint])

        assert calls == [""]

    @given(st.text(alphabet=" \t\n", max_size=5))
    def test_property_required_blank_gives_one_error(self, blank):
        """Property: a required rule reports exactly one error for any blank value"""
        rule = create_compliance_rule(
            category_id="c", field_key="recipientName", display_name="Recipient Name",
            is_required=True, validation_pattern=r"^.{2,}$",
        )
        findings = FieldValidationEngine().validate_field(blank, rule)

        assert len(findings) == 1
        assert findings[0].level == "error"
        assert findings[0].message == "Recipient Name is required"

    @given(st.text(min_size=1).filter(lambda s: s.strip() != ""))
    def test_property_optional_rule_without_checks_passes(self, value):
        """Property: a rule with no pattern or constraints never reports"""
        rule = create_compliance_rule(category_id="c", field_key="notes")
        assert FieldValidationEngine().validate_field(value, rule) == []


class TestValidateShipment:
    """Tests for whole-shipment validation against a snapshot"""

    def test_unknown_fields_reported_as_info(self, weight_catalog):
        engine = FieldValidationEngine(snapshot_of(weight_catalog))
        result = engine.validate_shipment({"weight": "2 kg", "giftWrap": "yes"})

        assert len(result.findings) == 1
        finding = result.findings[0]
        assert finding.level == "info"
        assert finding.kind == "unknown_field"
        assert finding.message == "No validation rules found for field: giftWrap"
        assert result.normalized_fields["giftWrap"] == "yes"

    def test_rules_run_in_category_then_rule_priority(self):
        catalog = (
            RuleConfigBuilder()
            .add_category("late", priority=50)
            .add_category("early", priority=10)
            .add_rule("b", category="late", required=True, priority=1)
            .add_rule("a2", category="early", required=True, priority=2)
            .add_rule("a1", category="early", required=True, priority=1)
            .build()
        )
        result = FieldValidationEngine(snapshot_of(catalog)).validate_shipment({})

        assert [f.field_key for f in result.findings] == ["a1", "a2", "b"]

    def test_inactive_category_rules_are_skipped(self):
        catalog = (
            RuleConfigBuilder()
            .add_category("off", is_active=False)
            .add_rule("weight", category="off", required=True)
            .build()
        )
        snapshot = snapshot_of(catalog)

        assert snapshot.rules == ()
        result = FieldValidationEngine(snapshot).validate_shipment({"weight": ""})
        assert [f.kind for f in result.findings] == ["unknown_field"]

    def test_rule_with_unknown_category_sorts_last(self):
        known = create_rule_category(name="Known", priority=99)
        orphan = create_compliance_rule(category_id="gone", field_key="orphan", priority=0)
        member = create_compliance_rule(category_id=known.id, field_key="member", priority=5)

        snapshot = RuleSnapshot.build([orphan, member], [known])

        assert [r.field_key for r in snapshot.rules] == ["member", "orphan"]

    def test_regional_override(self):
        catalog = RuleConfigBuilder().add_rule("eoriNumber", display_name="EORI Number").build()
        rule = catalog.rules[0]
        override = create_regional_rule(
            base_rule_id=rule.id,
            region="UK",
            is_required=True,
            validation_pattern=r"^GB\d{12}$",
            validation_message="UK EORI numbers start with GB",
        )
        engine = FieldValidationEngine(snapshot_of(catalog, [override]))

        assert engine.validate_shipment({}).findings == []
        assert [f.kind for f in engine.validate_shipment({}, region="UK").findings] == ["required"]

        findings = engine.validate_shipment({"eoriNumber": "DE123"}, region="uk").findings
        assert findings[0].message == "UK EORI numbers start with GB"

    def test_invalid_stored_pattern_does_not_stop_other_rules(self):
        catalog = (
            RuleConfigBuilder()
            .add_rule("broken", pattern="(unclosed")
            .add_rule("weight", required=True)
            .build()
        )
        snapshot = snapshot_of(catalog)
        assert snapshot.problems

        result = FieldValidationEngine(snapshot).validate_shipment({"broken": "x"})

        assert {(f.field_key, f.kind) for f in result.findings} == {
            ("broken", "configuration"),
            ("weight", "required"),
        }

    def test_snapshot_compiles_constraint_values(self, weight_catalog):
        snapshot = snapshot_of(weight_catalog)
        values = sorted(snapshot.constraint_values.values())
        assert values == [0.1, 1000.0]
