"""
Component Test Mocks

Shared mock implementations for component testing.
These mocks replace real I/O dependencies (store HTTP APIs, event bus).
"""

from .event_bus_mock import MockEventBus
from .http_mock import MockStoreServer

__all__ = [
    'MockEventBus',
    'MockStoreServer',
]
