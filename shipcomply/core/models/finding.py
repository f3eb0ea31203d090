"""
Result models produced by the validation and compliance engines (ephemeral,
never persisted).
"""

from typing import Literal

from pydantic import BaseModel, Field

from .common import new_id

ComplianceStatus = Literal["compliant", "non-compliant", "warning"]
FindingKind = Literal["required", "pattern", "constraint", "configuration", "unknown_field"]

# Field-engine levels mapped onto report statuses. Only an explicit pass is
# "compliant"; info findings (unknown fields, unevaluated checks) are warnings.
LEVEL_TO_STATUS: dict[str, ComplianceStatus] = {
    "error": "non-compliant",
    "warning": "warning",
    "info": "warning",
}


class ValidationFinding(BaseModel):
    """
    One finding from the Field Validation Engine.

    Attributes:
        field_key: Shipment field the finding is about
        level: "error", "warning" or "info"
        message: Human-readable message
        value: The originally supplied value
        kind: What produced the finding
        rule_id: Rule that produced the finding, if any
        constraint_id: Constraint that produced the finding, if any
    """

    field_key: str
    level: Literal["error", "warning", "info"]
    message: str
    value: str = ""
    kind: FindingKind = "pattern"
    rule_id: str | None = None
    constraint_id: str | None = None

    def to_compliance_finding(self, label: str | None = None) -> "ComplianceFinding":
        return ComplianceFinding(
            field=label or self.field_key,
            value=self.value,
            status=LEVEL_TO_STATUS[self.level],
            message=self.message,
        )


class ComplianceFinding(BaseModel):
    """One compliance result entry (field or scope, status, message)."""

    id: str = Field(default_factory=new_id)
    field: str
    value: str = ""
    status: ComplianceStatus
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "field": "Restricted Destination",
                "value": "CU",
                "status": "non-compliant",
                "message": "Shipping to CU is restricted or prohibited (embargoed: Subject to trade embargo).",
            }
        }


class ComplianceStats(BaseModel):
    """Counts of findings by status and the compliance rate in percent."""

    compliant: int = 0
    non_compliant: int = 0
    warnings: int = 0
    total: int = 0
    compliance_rate: float = Field(0.0, ge=0.0, le=100.0)


class CrossBorderReport(BaseModel):
    """
    Outcome of the Cross-Border Compliance Engine for one shipment.

    classifier_degraded is True when restricted-content detection ran
    keyword-only because the classifier failed or was disabled.
    """

    is_international: bool
    findings: list[ComplianceFinding] = Field(default_factory=list)
    classifier_degraded: bool = False
    notes: list[str] = Field(default_factory=list)


class ShipmentComplianceReport(BaseModel):
    """Combined field-validation and cross-border outcome for one shipment."""

    shipment_id: str
    field_findings: list[ValidationFinding] = Field(default_factory=list)
    normalized_fields: dict[str, str] = Field(default_factory=dict)
    cross_border: CrossBorderReport
    findings: list[ComplianceFinding] = Field(default_factory=list)
    stats: ComplianceStats = Field(default_factory=ComplianceStats)

    @property
    def passed(self) -> bool:
        return all(f.status != "non-compliant" for f in self.findings)


def calculate_compliance_stats(findings: list[ComplianceFinding]) -> ComplianceStats:
    """
    Summarize findings by status.

    Args:
        findings: Compliance findings of one report

    Returns:
        ComplianceStats; compliance_rate is 0 for an empty list
    """
    total = len(findings)
    compliant = sum(1 for f in findings if f.status == "compliant")
    non_compliant = sum(1 for f in findings if f.status == "non-compliant")
    warnings = sum(1 for f in findings if f.status == "warning")

    return ComplianceStats(
        compliant=compliant,
        non_compliant=non_compliant,
        warnings=warnings,
        total=total,
        compliance_rate=(compliant / total) * 100 if total > 0 else 0.0,
    )
