"""
Cross-Border Compliance Engine.

Decides whether a shipment crosses a border and, if it does, checks
required international fields, the destination (restrictions, country
requirements, enhanced documentation) and the package contents (keyword
lists plus the semantic classifier). Sub-checks are independent: one that
fails is logged and noted on the report, and the others still run.
"""

import re
from collections.abc import Callable, Iterable, Mapping

from shipcomply.core.models import ComplianceFinding, CrossBorderReport
from shipcomply.core.models.common import display_name_for
from shipcomply.observability.logger import get_logger

from .classifier import ClassificationContext, DisabledClassifier, SemanticClassifier
from .countries import normalize_country_code
from .reference import CrossBorderReference

logger = get_logger(__name__)

INTERNATIONAL_WORDS = (
    "international",
    "global",
    "customs",
    "duty",
    "import",
    "export",
    "overseas",
    "foreign",
    "vat",
    "tariff",
)

COUNTRY_NAMES = (
    "germany",
    "france",
    "spain",
    "china",
    "japan",
    "canada",
    "england",
    "united kingdom",
    "mexico",
    "australia",
    "india",
    "brazil",
)

# Matched case-sensitively as whole words. CA and DE are left out because
# they are also US state abbreviations.
COUNTRY_CODE_TOKENS = ("UK", "GB", "EU", "CN", "JP", "FR", "IT", "ES", "MX")

INTERNATIONAL_SERVICES = (
    "international",
    "global",
    "worldwide",
    "priority international",
    "express international",
    "dhl",
    "fedex international",
    "ups worldwide",
)

CUSTOMS_FIELDS = ("customsInfo", "hsTariffNumber", "eoriNumber", "declaredValue")

# Accepted alternative keys (lowercase) for required international fields
FIELD_VARIATIONS: dict[str, tuple[str, ...]] = {
    "packageType": ("parceltype", "package_type", "parcel_type", "packagetype", "type", "package"),
    "weight": ("gross_weight", "grossweight", "parcelweight", "shippingweight", "total_weight", "wt"),
    "dimensions": ("size", "measurements", "dimension", "package_dimensions", "parceldimensions", "lwh"),
    "packageContents": ("contents", "items", "goods", "description", "itemdescription", "product"),
    "declaredValue": ("value", "customsvalue", "goodsvalue", "itemvalue", "declared_value", "price"),
}

DESTINATION_FIELDS = ("recipientCountry", "destinationCountry")


def _word_pattern(words: Iterable[str], flags: int = 0) -> re.Pattern:
    alternatives = "|".join(re.escape(word) for word in words)
    return re.compile(rf"\b(?:{alternatives})\b", flags)


_INDICATOR_WORDS = _word_pattern(INTERNATIONAL_WORDS + COUNTRY_NAMES, re.IGNORECASE)
_INDICATOR_CODES = _word_pattern(COUNTRY_CODE_TOKENS)
_SERVICE_PHRASES = _word_pattern(INTERNATIONAL_SERVICES, re.IGNORECASE)


def _has_value(value: str | None) -> bool:
    return value is not None and str(value).strip() != ""


def has_international_indicators(text: str | None) -> bool:
    """True if text mentions an international keyword, country name or code."""
    if not text:
        return False
    return bool(_INDICATOR_WORDS.search(text) or _INDICATOR_CODES.search(text))


def is_international_service(service: str | None) -> bool:
    """True if a shipping service name is an international carrier service."""
    return bool(service) and bool(_SERVICE_PHRASES.search(service))


def find_field(fields: Mapping[str, str], field_key: str) -> str | None:
    """
    Look up a field by exact key, then case-insensitively, then by known variations.

    Returns:
        The first non-blank value found, or None
    """
    if _has_value(fields.get(field_key)):
        return fields[field_key]

    lowered = {key.lower(): value for key, value in fields.items()}
    candidates = (field_key.lower(),) + FIELD_VARIATIONS.get(field_key, ())
    for candidate in candidates:
        if _has_value(lowered.get(candidate)):
            return lowered[candidate]
    return None


def dedupe(labels: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, keeping the first spelling and order."""
    seen: set[str] = set()
    result = []
    for label in labels:
        key = label.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(label.strip())
    return result


def _humanize(field_keys: Iterable[str]) -> str:
    return ", ".join(display_name_for(key) for key in field_keys)


class CrossBorderComplianceEngine:
    """
    Evaluates one shipment against a CrossBorderReference.

    The engine holds no per-shipment state; concurrent check() calls are
    safe as long as the classifier tolerates concurrent requests.
    """

    def __init__(self, reference: CrossBorderReference, classifier: SemanticClassifier | None = None):
        self.reference = reference
        self.classifier = classifier or DisabledClassifier()

    def is_international(self, fields: Mapping[str, str], raw_text: str = "") -> bool:
        """
        Decide whether a shipment crosses a border.

        International when shipper and recipient countries are both present
        and normalize to different codes, when a customs field is present,
        when the recipient address or raw text carries an international
        indicator, or when the shipping service is an international one.
        """
        shipper = fields.get("shipperCountry")
        recipient = self._destination(fields)
        if _has_value(shipper) and _has_value(recipient):
            if normalize_country_code(shipper) != normalize_country_code(recipient):
                return True

        if has_international_indicators(fields.get("recipientAddress")):
            return True

        if any(_has_value(fields.get(key)) for key in CUSTOMS_FIELDS):
            return True

        if is_international_service(fields.get("shippingService")):
            return True

        return has_international_indicators(raw_text)

    def check(self, fields: Mapping[str, str], raw_text: str = "") -> CrossBorderReport:
        """
        Run every cross-border check on a shipment.

        Args:
            fields: Shipment field map
            raw_text: Free text the fields were extracted from, if any

        Returns:
            CrossBorderReport; empty and is_international=False for domestic shipments
        """
        if not self.is_international(fields, raw_text):
            return CrossBorderReport(is_international=False)

        report = CrossBorderReport(is_international=True)
        if self.reference.fallbacks:
            report.notes.append(
                f"Built-in defaults used for: {', '.join(sorted(self.reference.fallbacks))}"
            )

        destination = self._destination(fields)
        country_code = normalize_country_code(destination) if _has_value(destination) else ""

        self._run(report, "required international fields", lambda: self._check_required_fields(fields))
        if country_code:
            self._run(report, "restricted destination", lambda: self._check_restricted_destination(country_code))
            self._run(
                report,
                "country requirements",
                lambda: self._check_country_requirements(fields, country_code),
            )

        contents = find_field(fields, "packageContents")
        if contents is not None:
            self._run(
                report,
                "restricted contents",
                lambda: self._check_restricted_items(report, contents, country_code),
            )

        return report

    @staticmethod
    def _destination(fields: Mapping[str, str]) -> str | None:
        for key in DESTINATION_FIELDS:
            if _has_value(fields.get(key)):
                return fields[key]
        return None

    @staticmethod
    def _run(report: CrossBorderReport, name: str, check: Callable[[], list[ComplianceFinding]]) -> None:
        try:
            report.findings.extend(check())
        except Exception as e:
            logger.error(
                f"Cross-border check '{name}' failed, continuing with remaining checks: {e}",
                extra={"check": name, "error_type": type(e).__name__},
                exc_info=True,
            )
            report.notes.append(f"Check '{name}' could not be completed")

    def _check_required_fields(self, fields: Mapping[str, str]) -> list[ComplianceFinding]:
        missing = [key for key in self.reference.international_fields if find_field(fields, key) is None]
        if not missing:
            return []

        return [
            ComplianceFinding(
                field="International Shipping Requirements",
                value=", ".join(missing),
                status="non-compliant",
                message=(
                    f"Missing required fields for international shipping: {_humanize(missing)}. "
                    "These fields are mandatory for customs clearance."
                ),
            )
        ]

    def _check_restricted_destination(self, country_code: str) -> list[ComplianceFinding]:
        restriction = self.reference.restricted_destinations.get(country_code)
        if restriction is None:
            return []

        reason = restriction.restriction_type
        if restriction.details:
            reason = f"{reason}: {restriction.details}"
        return [
            ComplianceFinding(
                field="Restricted Destination",
                value=country_code,
                status="non-compliant",
                message=(
                    f"Shipping to {country_code} is restricted or prohibited ({reason}). "
                    "Shipment cannot proceed without special authorization."
                ),
            )
        ]

    def _check_country_requirements(self, fields: Mapping[str, str], country_code: str) -> list[ComplianceFinding]:
        findings = []

        # Exact keys only; no case-insensitive or variation lookup here
        required = self.reference.country_requirements.get(country_code)
        if required:
            missing = [key for key in required if not _has_value(fields.get(key))]
            if missing:
                findings.append(
                    ComplianceFinding(
                        field=f"{country_code} Specific Requirements",
                        value=", ".join(missing),
                        status="non-compliant",
                        message=(
                            f"Missing country-specific required fields for shipping to {country_code}: "
                            f"{_humanize(missing)}. These fields are required for customs clearance "
                            "in this country."
                        ),
                    )
                )

        if country_code in self.reference.enhanced_documentation:
            documents = self.reference.enhanced_documentation[country_code]
            message = (
                f"Shipping to {country_code} requires enhanced documentation and may be subject to "
                "additional scrutiny. Consider including commercial invoice, certificate of origin, "
                "and detailed packing list."
            )
            if documents:
                message += f" Required documents: {'; '.join(documents)}."
            findings.append(
                ComplianceFinding(
                    field="Enhanced Documentation",
                    value=country_code,
                    status="warning",
                    message=message,
                )
            )

        return findings

    def _check_restricted_items(
        self, report: CrossBorderReport, contents: str, country_code: str
    ) -> list[ComplianceFinding]:
        findings = []

        keyword_hits = self._keyword_hits(contents, self.reference.restricted_items_for("ALL"))
        global_hits = dedupe(keyword_hits + self._classify(report, ClassificationContext(text=contents)))
        if global_hits:
            listed = ", ".join(global_hits)
            findings.append(
                ComplianceFinding(
                    field="Globally Restricted Items",
                    value=listed,
                    status="non-compliant",
                    message=(
                        f"Package contains globally restricted items: {listed}. These items are generally "
                        "prohibited for international shipping and may result in seizure, fines, or "
                        "legal penalties."
                    ),
                )
            )

        country_items = self.reference.restricted_items_for(country_code) if country_code else ()
        if country_items:
            context = ClassificationContext(
                text=contents,
                country_code=country_code,
                category_hints=tuple(country_items),
            )
            keyword_hits = self._keyword_hits(contents, country_items)
            country_hits = dedupe(keyword_hits + self._classify(report, context))
            if country_hits:
                listed = ", ".join(country_hits)
                findings.append(
                    ComplianceFinding(
                        field=f"{country_code} Restricted Items",
                        value=listed,
                        status="non-compliant",
                        message=(
                            f"Package contains items restricted in {country_code}: {listed}. These items "
                            "may be prohibited or require special permits for import into this country."
                        ),
                    )
                )

        return findings

    @staticmethod
    def _keyword_hits(contents: str, categories: Iterable[str]) -> list[str]:
        lowered = contents.lower()
        return [category for category in categories if category.lower() in lowered]

    def _classify(self, report: CrossBorderReport, context: ClassificationContext) -> list[str]:
        try:
            return self.classifier.detect(context)
        except Exception as e:
            if not report.classifier_degraded:
                report.notes.append("Restricted-content detection ran on keyword lists only")
            report.classifier_degraded = True
            logger.warning(
                f"Classifier unavailable, keyword-only detection: {e}",
                extra={"country_code": context.country_code},
            )
            return []
