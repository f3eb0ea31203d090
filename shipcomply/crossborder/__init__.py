"""
Cross-border compliance: country normalization, reference data, the
semantic classifier client and the compliance engine.
"""

from .classifier import (
    ClassificationContext,
    DisabledClassifier,
    HttpSemanticClassifier,
    SemanticClassifier,
)
from .countries import normalize_country_code
from .engine import CrossBorderComplianceEngine
from .reference import CrossBorderReference, DestinationRestriction

__all__ = [
    "CrossBorderComplianceEngine",
    "CrossBorderReference",
    "DestinationRestriction",
    "SemanticClassifier",
    "HttpSemanticClassifier",
    "DisabledClassifier",
    "ClassificationContext",
    "normalize_country_code",
]
