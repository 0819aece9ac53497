"""
Shared Test Fixtures

Centralized factories and generators used across all test layers.

Structure:
    - common.py: Base ID generators, timestamps
    - shipment_fixtures.py: Shipment service factories
"""

# Common utilities
from .common import (
    make_shipment_id,
    make_tracking_number,
    make_email,
    make_timestamp,
)

# Shipment service fixtures
from .shipment_fixtures import (
    make_contact,
    make_address,
    make_item,
    make_tracking_event,
    make_shipment_draft,
    make_shipment_document,
)

__all__ = [
    "make_shipment_id",
    "make_tracking_number",
    "make_email",
    "make_timestamp",
    "make_contact",
    "make_address",
    "make_item",
    "make_tracking_event",
    "make_shipment_draft",
    "make_shipment_document",
]
