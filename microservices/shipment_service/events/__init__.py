"""
Shipment Service Events Module

Exports all event-related functionality for shipment service
"""

from .models import ShipmentChangeEvent, ShipmentStreamConfig
from .bus import InProcessEventBus
from .publishers import (
    publish_shipment_created,
    publish_shipment_updated,
    publish_shipment_deleted,
    publish_tracking_updated,
)

__all__ = [
    # Event Models
    "ShipmentChangeEvent",
    "ShipmentStreamConfig",
    # Bus
    "InProcessEventBus",
    # Publishers
    "publish_shipment_created",
    "publish_shipment_updated",
    "publish_shipment_deleted",
    "publish_tracking_updated",
]
