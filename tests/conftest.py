"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/  : Component tests (API over an in-memory store, HTTP
                    store adapters over httpx.MockTransport)
    - unit/       : Unit tests (pure functions, repository on the in-memory store)
"""
import os
import sys
from typing import Any, Dict, List

import pytest

# Tests never pick up a developer's store settings
os.environ["ENV"] = "testing"
os.environ["SHIPMENT_STORE_BACKEND"] = "memory"
os.environ["SHIPMENT_SEED_DEMO_DATA"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

# Import shared fixtures from tests/fixtures
from tests.fixtures import (
    make_shipment_draft,
    make_shipment_document,
    make_tracking_event,
)


# =============================================================================
# Shared Data Fixtures
# =============================================================================

@pytest.fixture
def draft() -> Dict[str, Any]:
    """A valid shipment draft with tracking number SHIP0000001"""
    return make_shipment_draft(tracking_number="SHIP0000001")


@pytest.fixture
def stored_document() -> Dict[str, Any]:
    """A stored shipment document with one seed event"""
    return make_shipment_document(tracking_number="SHIP7654321")


@pytest.fixture
def tracking_event() -> Dict[str, Any]:
    return make_tracking_event()


# =============================================================================
# Assertion Helpers
# =============================================================================

class AssertionHelpers:
    """Custom assertion helpers for tests"""

    @staticmethod
    def assert_http_success(response, expected_status: int = 200):
        """Assert HTTP response is successful"""
        assert response.status_code == expected_status, \
            f"Expected {expected_status}, got {response.status_code}: {response.text}"

    @staticmethod
    def assert_has_fields(data: Dict, fields: List[str]):
        """Assert dict has required fields"""
        missing = [f for f in fields if f not in data]
        assert not missing, f"Missing fields: {missing}"

    @staticmethod
    def assert_event_published(events: List[Dict], event_type: str, **kwargs):
        """Assert a change notification was published with expected data"""
        matching = [e for e in events if e.get("type") == event_type]
        assert matching, f"Event '{event_type}' not found in {events}"

        if kwargs:
            for event in matching:
                if all(event.get("data", {}).get(k) == v for k, v in kwargs.items()):
                    return event
            assert False, f"No event matched criteria: {kwargs}"

        return matching[0]


@pytest.fixture
def assertions() -> AssertionHelpers:
    """Provide assertion helpers"""
    return AssertionHelpers()


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
