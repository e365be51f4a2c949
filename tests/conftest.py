"""
Pytest configuration.

Registers the integration marker/option and resets the process-wide
store, rate limiter and settings between tests.
"""

import pytest
from invoice_match.api.deps import rate_limiter
from invoice_match.core.config import settings
from invoice_match.services.storage import invoice_store

TEST_WEBHOOK_SECRET = "test-secret"


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against real Azure resources"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real Azure resources"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def isolated_app_state(monkeypatch):
    """Fresh in-memory store and limiter, mock extraction, known webhook secret"""
    invoice_store.clear()
    rate_limiter.reset()
    monkeypatch.setattr(settings, "az_di_endpoint", None)
    monkeypatch.setattr(settings, "az_di_api_key", None)
    monkeypatch.setattr(settings, "teams_webhook_url", None)
    monkeypatch.setattr(settings, "invoice_store_backend", "memory")
    monkeypatch.setattr(settings, "invoice_webhook_secret", TEST_WEBHOOK_SECRET)
    yield
    invoice_store.clear()
    rate_limiter.reset()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {TEST_WEBHOOK_SECRET}"}
