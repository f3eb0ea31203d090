"""
Admin CLI for managing the shipment compliance rule catalog.

Usage:
    python -m shipcomply.cli.admin_cli init
    python -m shipcomply.cli.admin_cli reset --yes
    python -m shipcomply.cli.admin_cli list-rules [--category <name>] [--inactive]
    python -m shipcomply.cli.admin_cli validate --file <shipment.json|yaml> [--json]
    python -m shipcomply.cli.admin_cli stats
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from shipcomply.config import Settings, load_settings
from shipcomply.core.models import ShipmentComplianceReport
from shipcomply.observability.logger import get_logger, setup_logger
from shipcomply.service import ComplianceService
from shipcomply.store.base import EntityKind
from shipcomply.store.repository import RuleRepository

logger = get_logger(__name__)

STATUS_MARKERS = {
    "compliant": "OK",
    "warning": "WARN",
    "non-compliant": "FAIL",
}


def load_shipment_file(path: str | Path) -> dict[str, Any]:
    """
    Read a shipment from a JSON or YAML file.

    The file holds either a field map or {"fields": {...}, "raw_text": "..."}.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not hold a mapping
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Shipment file must contain a mapping: {path}")
    if "fields" not in data:
        data = {"fields": data}
    if not isinstance(data["fields"], dict):
        raise ValueError(f"'fields' must be a mapping: {path}")

    data["fields"] = {str(k): "" if v is None else str(v) for k, v in data["fields"].items()}
    return data


def print_report(report: ShipmentComplianceReport) -> None:
    """Print a compliance report as a table."""
    print(f"\n{'=' * 80}")
    print(f"COMPLIANCE REPORT: {report.shipment_id}")
    print(f"{'=' * 80}\n")

    print(f"International: {'yes' if report.cross_border.is_international else 'no'}")
    if report.cross_border.classifier_degraded:
        print("Restricted-content detection: keyword lists only (classifier unavailable)")
    for note in report.cross_border.notes:
        print(f"Note: {note}")
    print()

    for finding in report.findings:
        marker = STATUS_MARKERS[finding.status]
        print(f"  [{marker:<4}] {finding.field:<35} {finding.value[:30]:<30}")
        if finding.status != "compliant":
            print(f"         {finding.message}")

    stats = report.stats
    print(f"\n{'-' * 80}")
    print(
        f"Compliant: {stats.compliant}  Warnings: {stats.warnings}  "
        f"Non-compliant: {stats.non_compliant}  Rate: {stats.compliance_rate:.1f}%"
    )
    print(f"{'=' * 80}\n")


def init_command(args, service: ComplianceService) -> None:
    """
    Seed the default catalog into an empty store.

    Args:
        args: Command line arguments
        service: Compliance service bound to the configured store
    """
    logger.info("Initializing rule catalog")
    if service.loader.initialize():
        print("\nDefault rule catalog initialized.")
    else:
        print("\nRule catalog already present; nothing to do.")


def reset_command(args, service: ComplianceService) -> None:
    """Clear the store and restore the default catalog."""
    if not args.yes:
        print("\nRefusing to reset without --yes: this deletes every rule in the store.")
        sys.exit(1)

    logger.warning("Resetting rule catalog to defaults")
    service.loader.reset()
    print("\nRule catalog reset to defaults.")


def list_rules_command(args, service: ComplianceService) -> None:
    """List rules grouped by category in evaluation order."""
    repository = RuleRepository(service.store)
    categories = repository.get_all_categories()
    rules = repository.get_all_rules() if args.inactive else repository.get_active_rules()

    if args.category:
        wanted = args.category.lower()
        categories = [c for c in categories if c.name.lower() == wanted]

    if not rules:
        print("\nNo rules found. Run 'init' to seed the default catalog.")
        return

    for category in categories:
        category_rules = sorted(
            (r for r in rules if r.category_id == category.id),
            key=lambda r: r.priority,
        )
        if not category_rules:
            continue

        print(f"\n{category.name} (priority {category.priority})")
        print(f"{'-' * 80}")
        for rule in category_rules:
            flags = []
            if rule.is_required:
                flags.append("required")
            if not rule.is_active:
                flags.append("inactive")
            if rule.transform:
                flags.append(f"transform={rule.transform}")
            print(f"  {rule.field_key:<25} {rule.label:<25} {', '.join(flags)}")
    print()


def validate_command(args, service: ComplianceService) -> None:
    """Validate a shipment file and print the report."""
    shipment = load_shipment_file(args.file)
    service.bootstrap()

    report = service.check_shipment(
        shipment["fields"],
        raw_text=shipment.get("raw_text", ""),
        shipment_id=shipment.get("shipment_id") or Path(args.file).stem,
    )

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print_report(report)

    if not report.passed:
        sys.exit(2)


def stats_command(args, service: ComplianceService) -> None:
    """Print entity counts for every kind in the store."""
    print(f"\n{'=' * 60}")
    print("RULE STORE STATISTICS")
    print(f"{'=' * 60}\n")

    for kind in EntityKind:
        entities = service.store.get_all(kind)
        active = sum(1 for e in entities if getattr(e, "is_active", True))
        print(f"  {kind.value:<30} {len(entities):>8} ({active} active)")

    print(f"\n{'=' * 60}\n")


COMMANDS = {
    "init": init_command,
    "reset": reset_command,
    "list-rules": list_rules_command,
    "validate": validate_command,
    "stats": stats_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Admin CLI for the shipment compliance rule engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        help="Path to a .env file with settings (optional)"
    )
    parser.add_argument(
        "--store",
        choices=["memory", "postgres"],
        help="Store backend (default: STORE_BACKEND or memory)"
    )
    parser.add_argument(
        "--log-level",
        help="Log level (default: LOG_LEVEL or INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "init",
        help="Seed the default rule catalog into an empty store"
    )

    reset_parser = subparsers.add_parser(
        "reset",
        help="Delete everything and restore the default catalog"
    )
    reset_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm the reset"
    )

    list_parser = subparsers.add_parser(
        "list-rules",
        help="List rules by category"
    )
    list_parser.add_argument(
        "--category",
        help="Only show this category (by name)"
    )
    list_parser.add_argument(
        "--inactive",
        action="store_true",
        help="Include inactive rules"
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a shipment from a JSON or YAML file"
    )
    validate_parser.add_argument(
        "--file",
        required=True,
        help="Path to the shipment file"
    )
    validate_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )

    subparsers.add_parser(
        "stats",
        help="Show entity counts in the store"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for admin CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    overrides = {}
    if args.store:
        overrides["store_backend"] = args.store
    if args.log_level:
        overrides["log_level"] = args.log_level

    try:
        settings: Settings = load_settings(args.env_file, **overrides)
        setup_logger(level=settings.log_level, format_type=settings.log_format)

        with ComplianceService.from_settings(settings) as service:
            COMMANDS[args.command](args, service)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Command '{args.command}' failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
