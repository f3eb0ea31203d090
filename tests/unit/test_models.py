"""
Unit tests for Pydantic entity and result models.

Tests factories, defaults, validation and compliance stats.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from shipcomply.core.models import (
    ComplianceFinding,
    ValidationFinding,
    calculate_compliance_stats,
    create_compliance_rule,
    create_country_requirement,
    create_regional_rule,
    create_restricted_item,
    create_rule_category,
    create_validation_constraint,
)
from shipcomply.core.models.common import display_name_for


class TestFactories:
    """Tests for entity factories"""

    def test_rule_defaults(self):
        """Test factory fills id, activity and timestamps"""
        rule = create_compliance_rule({"category_id": "cat-1", "field_key": "weight"})

        assert rule.id
        assert rule.is_active is True
        assert rule.is_required is False
        assert rule.transform is None
        assert isinstance(rule.created_at, datetime)
        assert rule.created_at.tzinfo is not None

    def test_each_call_gets_new_id(self):
        first = create_rule_category(name="Shipping")
        second = create_rule_category(name="Shipping")
        assert first.id != second.id

    def test_explicit_none_uses_default(self):
        rule = create_compliance_rule(category_id="cat-1", field_key="weight", id=None, is_active=None)
        assert rule.id
        assert rule.is_active is True

    def test_unknown_keys_are_ignored(self):
        category = create_rule_category({"name": "Customs", "colour": "blue"})
        assert not hasattr(category, "colour")

    def test_rule_requires_category(self):
        with pytest.raises(ValidationError) as exc_info:
            create_compliance_rule(field_key="weight")
        assert "category_id" in str(exc_info.value)

    def test_unknown_transform_rejected(self):
        """Transforms are a closed set; no code names can be stored"""
        with pytest.raises(ValidationError):
            create_compliance_rule(category_id="c", field_key="weight", transform="eval")

    def test_constraint_type_and_level(self):
        constraint = create_validation_constraint(rule_id="r1", constraint_type="min", constraint_value="0.1")
        assert constraint.validation_level == "error"

        with pytest.raises(ValidationError):
            create_validation_constraint(rule_id="r1", constraint_type="between")

    def test_codes_are_uppercased(self):
        assert create_country_requirement(country_code="us").country_code == "US"
        assert create_regional_rule(base_rule_id="r1", region=" de ").region == "DE"
        item = create_restricted_item(category="alcohol", applies_to=["us", "ca"])
        assert item.applies_to == ["US", "CA"]

    def test_restricted_item_scope(self):
        global_item = create_restricted_item(category="weapons")
        local_item = create_restricted_item(category="alcohol", applies_to=["US"])

        assert global_item.applies_to_country("JP")
        assert local_item.applies_to_country("US")
        assert not local_item.applies_to_country("JP")


class TestDisplayName:
    """Tests for field key display names"""

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("recipientName", "Recipient Name"),
            ("hsTariffNumber", "Hs Tariff Number"),
            ("weight", "Weight"),
        ],
    )
    def test_display_name_for(self, key, expected):
        assert display_name_for(key) == expected


class TestFindings:
    """Tests for findings and stats"""

    def test_level_maps_to_status(self):
        error = ValidationFinding(field_key="weight", level="error", message="bad")
        warning = ValidationFinding(field_key="weight", level="warning", message="check")
        info = ValidationFinding(field_key="notes", level="info", message="fyi")

        assert error.to_compliance_finding("Weight").status == "non-compliant"
        assert error.to_compliance_finding("Weight").field == "Weight"
        assert warning.to_compliance_finding().status == "warning"
        assert info.to_compliance_finding().field == "notes"
        assert info.to_compliance_finding().status == "warning"

    def test_stats(self):
        findings = [
            ComplianceFinding(field="a", status="compliant", message=""),
            ComplianceFinding(field="b", status="compliant", message=""),
            ComplianceFinding(field="c", status="warning", message=""),
            ComplianceFinding(field="d", status="non-compliant", message=""),
        ]
        stats = calculate_compliance_stats(findings)

        assert stats.total == 4
        assert stats.compliant == 2
        assert stats.warnings == 1
        assert stats.non_compliant == 1
        assert stats.compliance_rate == 50.0

    def test_stats_empty(self):
        stats = calculate_compliance_stats([])
        assert stats.total == 0
        assert stats.compliance_rate == 0.0
