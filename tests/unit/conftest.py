"""
Unit Test Layer Configuration

Structure:
    tests/unit/
    └── shipment/    Status engine, validation, models, event bus, repository

Usage:
    pytest tests/unit -v                 # All unit tests
    pytest tests/unit -m unit -v         # By marker
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Tag everything under tests/unit with the unit marker"""
    for item in items:
        if "tests/unit" in str(item.path).replace(os.sep, "/"):
            item.add_marker(pytest.mark.unit)
