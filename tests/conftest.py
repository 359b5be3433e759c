"""
Test configuration for the SHC presentation test suite.
"""

import os

import pytest

from shc_common import WalletConfig
from shc_presentation import (
    BundleContentSpec,
    InMemoryManifestStore,
    ManifestEntry,
    default_scope_registry,
    smart_demo_provider,
)
from shc_presentation.registry import SHC_VACCINATION_PROFILE


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "matcher: mark test as constraint matcher related")
    config.addinivalue_line("markers", "transport: mark test as request encoding related")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "matcher" in item.name.lower():
            item.add_marker(pytest.mark.matcher)
        if "query" in item.name.lower() or "round_trip" in item.name.lower():
            item.add_marker(pytest.mark.transport)


@pytest.fixture(scope="session", autouse=True)
def test_environment_setup():
    """Keep SHC_* variables from the developer environment out of tests."""
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("SHC_"):
            del os.environ[key]
    os.environ["LOG_LEVEL"] = "DEBUG"

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def wallet_config():
    return WalletConfig(environment="testing")


@pytest.fixture
def demo_config():
    return WalletConfig(environment="testing", allow_unsecured_tokens=True)


@pytest.fixture
def registry():
    return default_scope_registry()


@pytest.fixture
def provider():
    return smart_demo_provider()


@pytest.fixture
def insurance_entry():
    return ManifestEntry(
        credential="shc-insurance",
        fhir_version="4.0.1",
        fhir_bundle_contains=(BundleContentSpec("Patient"), BundleContentSpec("Coverage")),
    )


@pytest.fixture
def vaccine_entry():
    return ManifestEntry(
        credential="shc-vaccine",
        fhir_version="4.0.1",
        fhir_bundle_contains=(
            BundleContentSpec("Patient"),
            BundleContentSpec("Immunization"),
            BundleContentSpec("Observation", profile=(SHC_VACCINATION_PROFILE,)),
        ),
    )


@pytest.fixture
def manifest_store(insurance_entry, vaccine_entry):
    return InMemoryManifestStore([insurance_entry, vaccine_entry])
