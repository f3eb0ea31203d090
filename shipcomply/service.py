"""
Compliance service: the explicit context object tying the store, rule
snapshot, cross-border reference and classifier together.

A service is set up once with bootstrap(). Evaluations read the snapshots
current at their start; refresh() replaces both snapshots in one step, so
an evaluation never mixes old and new rule data.
"""

import threading
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

from shipcomply.catalog.loader import DefaultCatalogLoader
from shipcomply.config import Settings
from shipcomply.core.models import (
    ComplianceFinding,
    ShipmentComplianceReport,
    calculate_compliance_stats,
)
from shipcomply.core.models.common import new_id
from shipcomply.core.rules import FieldValidationEngine, RuleSnapshot
from shipcomply.core.validators import CustomConstraintRegistry
from shipcomply.crossborder.classifier import DisabledClassifier, HttpSemanticClassifier, SemanticClassifier
from shipcomply.crossborder.countries import normalize_country_code
from shipcomply.crossborder.engine import DESTINATION_FIELDS, CrossBorderComplianceEngine
from shipcomply.crossborder.reference import CrossBorderReference
from shipcomply.observability.logger import get_logger, log_operation, log_shipment_report
from shipcomply.store.base import RuleStore
from shipcomply.store.connection import DatabaseConnectionPool
from shipcomply.store.memory import InMemoryRuleStore
from shipcomply.store.postgres import PostgresRuleStore

logger = get_logger(__name__)

VALIDATED_MESSAGE = "Field validated successfully"


@dataclass(frozen=True)
class _Snapshots:
    rules: RuleSnapshot
    reference: CrossBorderReference


def build_store(settings: Settings) -> RuleStore:
    """Create the store selected by settings.store_backend."""
    if settings.store_backend == "memory":
        return InMemoryRuleStore()

    pool = DatabaseConnectionPool.from_settings(settings)
    pool.open()
    return PostgresRuleStore(pool)


def build_classifier(settings: Settings) -> SemanticClassifier:
    """Create the HTTP classifier when enabled, else the disabled one."""
    if not settings.classifier_enabled:
        return DisabledClassifier()
    return HttpSemanticClassifier(
        base_url=settings.classifier_url,
        model=settings.classifier_model,
        api_key=settings.classifier_api_key,
        timeout_seconds=settings.classifier_timeout_seconds,
    )


class ComplianceService:
    """
    Runs field validation and cross-border checks for shipments.

    Example:
        service = ComplianceService(InMemoryRuleStore())
        service.bootstrap()
        report = service.check_shipment({"trackingNumber": "AB123456789US"})
    """

    def __init__(
        self,
        store: RuleStore,
        classifier: SemanticClassifier | None = None,
        custom_constraints: CustomConstraintRegistry | None = None,
        evaluation_timeout_seconds: float = 30.0,
        loader: DefaultCatalogLoader | None = None,
    ):
        self.store = store
        self.classifier = classifier or DisabledClassifier()
        self.custom_constraints = custom_constraints or CustomConstraintRegistry()
        self.evaluation_timeout_seconds = evaluation_timeout_seconds
        self.loader = loader or DefaultCatalogLoader(store)
        self._refresh_lock = threading.Lock()
        self._snapshots = _Snapshots(RuleSnapshot(), CrossBorderReference.builtin())

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ComplianceService":
        """Build a service with the store and classifier chosen by settings."""
        return cls(
            store=build_store(settings),
            classifier=build_classifier(settings),
            evaluation_timeout_seconds=settings.evaluation_timeout_seconds,
            **kwargs,
        )

    @property
    def rule_snapshot(self) -> RuleSnapshot:
        return self._snapshots.rules

    @property
    def reference(self) -> CrossBorderReference:
        return self._snapshots.reference

    def bootstrap(self) -> bool:
        """
        Seed the default catalog if the store is empty, then load snapshots.

        Safe to call more than once.

        Returns:
            True if the default catalog was seeded by this call
        """
        with log_operation("Bootstrapping compliance service", logger=logger):
            seeded = self.loader.initialize()
            self.refresh()
        return seeded

    def refresh(self) -> None:
        """
        Rebuild the rule snapshot and cross-border reference from the store.

        Raises:
            StoreUnavailable: If the rule catalog cannot be read; the current
                snapshots stay in place
        """
        with self._refresh_lock:
            rules = RuleSnapshot.load(self.store)
            reference = CrossBorderReference.load(self.store)
            self._snapshots = _Snapshots(rules, reference)

    def reset(self) -> None:
        """Restore the default catalog and reload snapshots."""
        self.loader.reset()
        self.refresh()

    def check_shipment(
        self,
        fields: Mapping[str, str],
        raw_text: str = "",
        shipment_id: str | None = None,
    ) -> ShipmentComplianceReport:
        """
        Validate one shipment.

        Args:
            fields: Shipment field map
            raw_text: Free text the fields were extracted from, if any
            shipment_id: Identifier for the report; generated when omitted

        Returns:
            ShipmentComplianceReport with field findings, the cross-border
            report, merged compliance findings and stats
        """
        snapshots = self._snapshots
        shipment_id = shipment_id or new_id()

        region = None
        for key in DESTINATION_FIELDS:
            if fields.get(key, "").strip():
                region = normalize_country_code(fields[key])
                break

        validation = FieldValidationEngine(snapshots.rules, self.custom_constraints).validate_shipment(
            fields, region
        )
        cross_border = CrossBorderComplianceEngine(snapshots.reference, self.classifier).check(fields, raw_text)

        findings: list[ComplianceFinding] = []
        flagged = {f.field_key for f in validation.findings}
        for finding in validation.findings:
            rule = snapshots.rules.rule_for(finding.field_key)
            findings.append(finding.to_compliance_finding(rule.label if rule else None))

        for key, value in fields.items():
            rule = snapshots.rules.rule_for(key)
            if rule is None or key in flagged or not value.strip():
                continue
            findings.append(
                ComplianceFinding(
                    field=rule.label,
                    value=value,
                    status="compliant",
                    message=VALIDATED_MESSAGE,
                )
            )

        findings.extend(cross_border.findings)

        report = ShipmentComplianceReport(
            shipment_id=shipment_id,
            field_findings=validation.findings,
            normalized_fields=validation.normalized_fields,
            cross_border=cross_border,
            findings=findings,
            stats=calculate_compliance_stats(findings),
        )
        log_shipment_report(logger, report)
        return report

    def check_batch(
        self,
        shipments: Sequence[Mapping[str, str]],
        max_workers: int = 4,
        timeout: float | None = None,
    ) -> list[ShipmentComplianceReport | None]:
        """
        Validate independent shipments concurrently.

        Every shipment shares one deadline, ``timeout`` seconds after the
        batch is submitted, so a shipment queued behind slow ones is still
        reported on time.

        Args:
            shipments: Shipment field maps
            max_workers: Worker thread count
            timeout: Seconds to wait for the batch; defaults to
                evaluation_timeout_seconds

        Returns:
            Reports in input order; None for a shipment that missed the deadline
        """
        timeout = self.evaluation_timeout_seconds if timeout is None else timeout
        results: list[ShipmentComplianceReport | None] = []

        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="shipcomply")
        try:
            futures = [executor.submit(self.check_shipment, shipment) for shipment in shipments]
            done, _ = wait(futures, timeout=timeout)
            for index, future in enumerate(futures):
                if future in done:
                    results.append(future.result())
                    continue
                future.cancel()
                logger.error(
                    f"Shipment {index} timed out after {timeout}s",
                    extra={"batch_index": index, "timeout_seconds": timeout},
                )
                results.append(None)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results

    def close(self) -> None:
        """Release the classifier and store."""
        self.classifier.close()
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
