"""
Exception hierarchy for shipcomply.

Validation violations are never raised to callers; they are reported as
findings. The exceptions here cover store, catalog and classifier failures.
"""


class ShipComplyError(Exception):
    """Base class for all shipcomply errors."""


class StoreUnavailable(ShipComplyError):
    """Raised when a rule store read or write fails."""

    def __init__(self, operation: str, kind: str | None = None, cause: Exception | None = None):
        self.operation = operation
        self.kind = kind
        self.cause = cause
        target = f" on '{kind}'" if kind else ""
        detail = f": {cause}" if cause else ""
        super().__init__(f"Rule store unavailable during {operation}{target}{detail}")


class NotFound(ShipComplyError):
    """Raised when an update or delete targets a record that does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} record with id {entity_id} not found")


class CategoryInUseError(ShipComplyError):
    """Raised when deleting a category that rules still reference."""

    def __init__(self, category_id: str, rule_ids: list[str]):
        self.category_id = category_id
        self.rule_ids = rule_ids
        super().__init__(
            f"Category {category_id} is referenced by {len(rule_ids)} rule(s) and cannot be deleted"
        )


class InvalidRuleDefinition(ShipComplyError):
    """Raised when a stored pattern or constraint value cannot be compiled."""

    def __init__(self, rule_id: str, detail: str):
        self.rule_id = rule_id
        self.detail = detail
        super().__init__(f"Invalid definition for rule {rule_id}: {detail}")


class CatalogInitializationError(ShipComplyError):
    """Raised when seeding the default catalog fails; fatal at startup."""


class ClassifierFailure(ShipComplyError):
    """Raised when the semantic classifier is unreachable or returns unparseable output."""
