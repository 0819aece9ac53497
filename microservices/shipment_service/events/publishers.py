"""
Shipment Service Event Publishers

Functions to broadcast shipment changes. Publishing is advisory: a failure
here is logged and never propagates into the write that triggered it.
"""

import logging
from typing import Any, Dict, Optional

from ..models import ChangeType, Shipment

logger = logging.getLogger(__name__)


def _publish(event_bus, change_type: ChangeType, data: Dict[str, Any], key: str) -> bool:
    if not event_bus:
        logger.warning(f"Event bus not available, skipping {change_type.value} event")
        return False

    try:
        event_bus.publish(change_type.value, data)
        logger.debug(f"Published {change_type.value} event for shipment {key}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish {change_type.value} event for shipment {key}: {e}")
        return False


def publish_shipment_created(event_bus, shipment: Shipment) -> bool:
    """Publish created event"""
    return _publish(event_bus, ChangeType.CREATED, shipment.to_document(), shipment.tracking_number)


def publish_shipment_updated(event_bus, shipment: Shipment) -> bool:
    """Publish updated event"""
    return _publish(event_bus, ChangeType.UPDATED, shipment.to_document(), shipment.tracking_number)


def publish_shipment_deleted(
    event_bus,
    shipment_id: str,
    tracking_number: Optional[str] = None
) -> bool:
    """Publish deleted event"""
    data = {"id": shipment_id, "trackingNumber": tracking_number}
    return _publish(event_bus, ChangeType.DELETED, data, tracking_number or shipment_id)


def publish_tracking_updated(event_bus, shipment: Shipment) -> bool:
    """Publish tracking_updated event"""
    return _publish(event_bus, ChangeType.TRACKING_UPDATED, shipment.to_document(), shipment.tracking_number)
