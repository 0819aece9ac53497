"""
Unit Test Fixtures for Shipment Service

Repository tests run against the real in-memory store and event bus;
nothing here touches the network.
"""

import sys
import os
from typing import Any, Dict, List

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.shipment_service.events import InProcessEventBus
from microservices.shipment_service.shipment_repository import ShipmentRepository
from microservices.shipment_service.stores import InMemoryShipmentStore


class EventRecorder:
    """Subscriber that keeps every notification it receives"""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def __call__(self, message: Dict[str, Any]) -> None:
        self.events.append(message)

    @property
    def types(self) -> List[str]:
        return [e["type"] for e in self.events]


@pytest.fixture
def store() -> InMemoryShipmentStore:
    return InMemoryShipmentStore()


@pytest.fixture
def event_bus() -> InProcessEventBus:
    return InProcessEventBus()


@pytest.fixture
def recorder(event_bus) -> EventRecorder:
    recorder = EventRecorder()
    event_bus.subscribe(recorder)
    return recorder


@pytest.fixture
def repository(store, event_bus) -> ShipmentRepository:
    return ShipmentRepository(store=store, event_bus=event_bus)
