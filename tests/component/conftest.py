"""
Component Test Layer Configuration

Structure:
    tests/component/
    ├── shipment/    API, blob and document store adapters
    └── mocks/       Mock implementations

Usage:
    pytest tests/component -v
    pytest tests/component/shipment -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"
os.environ["SHIPMENT_STORE_BACKEND"] = "memory"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from tests.component.mocks import MockEventBus, MockStoreServer


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


def pytest_collection_modifyitems(config, items):
    """Tag everything under tests/component with the component marker"""
    for item in items:
        if "tests/component" in str(item.path).replace(os.sep, "/"):
            item.add_marker(pytest.mark.component)


# =============================================================================
# Mocks
# =============================================================================

@pytest.fixture
def mock_event_bus() -> MockEventBus:
    """Mock change-notification bus"""
    return MockEventBus()


@pytest.fixture
def store_server() -> MockStoreServer:
    """Mock blob/document store HTTP server"""
    return MockStoreServer()
