"""
Pytest configuration and fixtures for shipcomply tests

This module provides shared fixtures for unit and integration tests.
"""
import logging
from typing import Generator

import pytest
from testcontainers.postgres import PostgresContainer

from shipcomply.catalog.loader import DefaultCatalogLoader
from shipcomply.config import ENV_KEYS
from shipcomply.core.rules import RuleConfigBuilder, RuleSnapshot
from shipcomply.crossborder.classifier import ClassificationContext, SemanticClassifier
from shipcomply.exceptions import ClassifierFailure
from shipcomply.observability.logger import ROOT_LOGGER_NAME
from shipcomply.service import ComplianceService
from shipcomply.store.connection import DatabaseConnectionPool
from shipcomply.store.memory import InMemoryRuleStore
from shipcomply.store.postgres import PostgresRuleStore


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )


# =======================
# LOGGING
# =======================

@pytest.fixture
def restore_package_logger():
    """Put the package logger back as it was after a test reconfigures it"""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


# =======================
# CLASSIFIER DOUBLES
# =======================

class StaticClassifier(SemanticClassifier):
    """Classifier returning fixed labels per country code (None = global)."""

    def __init__(self, labels: dict[str | None, list[str]] | None = None):
        self.labels = labels or {}
        self.calls: list[ClassificationContext] = []

    def detect(self, context: ClassificationContext) -> list[str]:
        self.calls.append(context)
        return list(self.labels.get(context.country_code, []))


class FailingClassifier(SemanticClassifier):
    """Classifier that is always unavailable."""

    def detect(self, context: ClassificationContext) -> list[str]:
        raise ClassifierFailure("classifier offline")


@pytest.fixture
def static_classifier() -> StaticClassifier:
    return StaticClassifier()


# =======================
# STORE FIXTURES
# =======================

@pytest.fixture
def memory_store() -> InMemoryRuleStore:
    """Empty in-memory rule store"""
    return InMemoryRuleStore()


@pytest.fixture
def seeded_store(memory_store) -> InMemoryRuleStore:
    """In-memory store holding the default catalog"""
    DefaultCatalogLoader(memory_store).initialize()
    return memory_store


@pytest.fixture
def default_snapshot(seeded_store) -> RuleSnapshot:
    """Rule snapshot built from the default catalog"""
    return RuleSnapshot.load(seeded_store)


@pytest.fixture
def service(memory_store) -> Generator[ComplianceService, None, None]:
    """Bootstrapped compliance service on an in-memory store"""
    svc = ComplianceService(memory_store)
    svc.bootstrap()
    yield svc
    svc.close()


# =======================
# RULE FIXTURES
# =======================

@pytest.fixture
def weight_catalog():
    """Small catalog with a weight rule and its range constraints"""
    return (
        RuleConfigBuilder()
        .add_category("package", "Package Details", priority=20)
        .add_rule(
            "weight",
            category="package",
            pattern=r"^\d+(\.\d+)?\s*(kg|g|lb|lbs|oz)$",
            required=True,
            transform="normalize_weight",
            message="Weight must be a number followed by a unit",
            display_name="Weight",
        )
        .add_constraint("weight", "min", 0.1, "error", "Weight must be greater than 0.1")
        .add_constraint("weight", "max", 1000, "warning", "Weight exceeds 1000, verify the unit")
        .build()
    )


# =======================
# SAMPLE SHIPMENTS
# =======================

@pytest.fixture
def domestic_shipment() -> dict[str, str]:
    return {
        "trackingNumber": "AB123456789US",
        "shipperName": "Acme Corp",
        "shipperAddress": "1 Main St, Springfield, IL",
        "shipperCountry": "US",
        "recipientName": "Jane Doe",
        "recipientAddress": "500 Market St, San Francisco, CA",
        "recipientCountry": "US",
        "weight": "2.5 kg",
        "shippingService": "Ground",
    }


@pytest.fixture
def international_shipment() -> dict[str, str]:
    return {
        "trackingNumber": "AB123456789US",
        "shipperName": "Acme Corp",
        "shipperAddress": "1 Main St, Springfield, IL",
        "shipperCountry": "US",
        "recipientName": "Hans Muller",
        "recipientAddress": "Hauptstrasse 5, Berlin",
        "recipientCountry": "Germany",
        "packageType": "Box",
        "weight": "2.5 kg",
        "dimensions": "30x20x10 cm",
        "packageContents": "Cotton t-shirts",
        "declaredValue": "120.00",
    }


# =======================
# ENVIRONMENT FIXTURES
# =======================

@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove shipcomply settings from the environment

    Values written by load_dotenv during the test are undone as well.
    """
    for key in ENV_KEYS.values():
        # setenv records the original state so teardown restores it
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_compliance",
        password="test_password",
        dbname="test_compliance",
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def postgres_pool(postgres_container):
    """Open connection pool against the test container"""
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_compliance",
        user="test_compliance",
        password="test_password",
        timeout=10.0,
    )
    pool.open(max_retries=5, retry_delay=1.0)
    yield pool
    pool.close()


@pytest.fixture
def postgres_store(postgres_pool):
    """
    PostgreSQL rule store, emptied after each test

    The store does not own the session pool, so close() is not called here.
    """
    store = PostgresRuleStore(postgres_pool)
    yield store
    store.clear_all()
