"""
Unit tests for structured logging.
"""

import json

import pytest

from shipcomply.core.models import (
    ComplianceFinding,
    CrossBorderReport,
    ShipmentComplianceReport,
    calculate_compliance_stats,
)
from shipcomply.observability.logger import get_logger, log_operation, log_shipment_report, setup_logger


def json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestLogger:
    """Tests for logger setup"""

    def test_module_loggers_are_package_children(self):
        assert get_logger("shipcomply.store.memory").name == "shipcomply.store.memory"
        assert get_logger("plugins.hs").name == "shipcomply.plugins.hs"
        assert get_logger().name == "shipcomply"

    def test_json_output_with_extra_fields(self, restore_package_logger, capsys):
        setup_logger(level="debug", format_type="json")

        get_logger("shipcomply.test").warning("Fallback used", extra={"kind": "restrictedItems"})

        [record] = json_lines(capsys.readouterr().err)
        assert record["level"] == "WARNING"
        assert record["logger"] == "shipcomply.test"
        assert record["message"] == "Fallback used"
        assert record["kind"] == "restrictedItems"

    def test_text_output(self, restore_package_logger, capsys):
        setup_logger(level="INFO", format_type="text")

        get_logger("shipcomply.test").info("Loaded catalog")

        err = capsys.readouterr().err
        assert "INFO" in err
        assert "Loaded catalog" in err

    def test_unknown_level_defaults_to_info(self, restore_package_logger):
        assert setup_logger(level="chatty").level == 20


class TestLogOperation:
    """Tests for the log_operation context manager"""

    def test_success(self, restore_package_logger, capsys):
        setup_logger(level="INFO")

        with log_operation("Seeding catalog", logger=get_logger("shipcomply.test"), source="rules.yaml"):
            pass

        [record] = json_lines(capsys.readouterr().err)
        assert record["status"] == "success"
        assert record["operation"] == "Seeding catalog"
        assert record["source"] == "rules.yaml"
        assert record["duration_seconds"] >= 0

    def test_failure_is_logged_and_reraised(self, restore_package_logger, capsys):
        setup_logger(level="INFO")

        with pytest.raises(ValueError):
            with log_operation("Seeding catalog", logger=get_logger("shipcomply.test")):
                raise ValueError("bad yaml")

        [record] = json_lines(capsys.readouterr().err)
        assert record["status"] == "error"
        assert record["error_type"] == "ValueError"
        assert record["error_message"] == "bad yaml"


def test_log_shipment_report(restore_package_logger, capsys):
    setup_logger(level="INFO")
    findings = [
        ComplianceFinding(field="Weight", status="compliant", message="ok"),
        ComplianceFinding(field="Restricted Destination", value="CU", status="non-compliant", message="no"),
    ]
    report = ShipmentComplianceReport(
        shipment_id="s-1",
        cross_border=CrossBorderReport(is_international=True, notes=["Built-in defaults used for: restrictedItems"]),
        findings=findings,
        stats=calculate_compliance_stats(findings),
    )

    log_shipment_report(get_logger("shipcomply.test"), report)

    [record] = json_lines(capsys.readouterr().err)
    assert record["shipment_id"] == "s-1"
    assert record["non_compliant"] == 1
    assert record["is_international"] is True
    assert record["fallback_notes"] == ["Built-in defaults used for: restrictedItems"]
