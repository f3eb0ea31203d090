"""
shipcomply: shipment compliance rule engine.

Validates shipment field maps against a configurable rule catalog and
cross-border policy.
"""

__version__ = "0.1.0"
