"""
Rule store contract, in-memory and PostgreSQL implementations, and repositories.
"""

from .base import EntityKind, RuleStore
from .memory import InMemoryRuleStore
from .repository import CrossBorderRuleRepository, ImportSummary, RuleRepository

__all__ = [
    "EntityKind",
    "RuleStore",
    "InMemoryRuleStore",
    "RuleRepository",
    "CrossBorderRuleRepository",
    "ImportSummary",
]
