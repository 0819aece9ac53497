"""
Shipment Status Engine

Pure functions deriving display facts from a shipment's status and its
tracking history. Nothing here performs I/O or raises on unknown input.
"""

from enum import Enum
from typing import Any, Optional, Sequence, List

from .models import EventStatus, Shipment, ShipmentStatus, TrackingEvent


class ColorToken(str, Enum):
    """Badge color for a shipment status"""
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    NEUTRAL = "neutral"


STATUS_COLORS = {
    ShipmentStatus.DELIVERED.value: ColorToken.GREEN,
    ShipmentStatus.IN_TRANSIT.value: ColorToken.BLUE,
    ShipmentStatus.PROCESSING.value: ColorToken.YELLOW,
}

STATUS_LABELS = {
    ShipmentStatus.PENDING.value: "Pending",
    ShipmentStatus.LABEL_CREATED.value: "Label Created",
    ShipmentStatus.PROCESSING.value: "Processing",
    ShipmentStatus.IN_TRANSIT.value: "In Transit",
    ShipmentStatus.OUT_FOR_DELIVERY.value: "Out for Delivery",
    ShipmentStatus.DELIVERED.value: "Delivered",
    ShipmentStatus.ON_HOLD.value: "On Hold",
    "shipment_created": "Shipment Created",
    "arrived_at_facility": "Arrived at Facility",
    "departed_facility": "Departed Facility",
    "delivery_attempted": "Delivery Attempted",
    "exception": "Exception",
    "status_update": "Status Update",
    "location_updated": "Location Updated",
}

_SHIPMENT_STATUS_VALUES = {s.value for s in ShipmentStatus}


def _value(status: Any) -> str:
    if isinstance(status, Enum):
        return str(status.value)
    return str(status) if status is not None else ""


def color_class_for(status: Any) -> ColorToken:
    """Map a shipment status to a color; unknown statuses are neutral"""
    return STATUS_COLORS.get(_value(status), ColorToken.NEUTRAL)


def status_label(status: Any) -> str:
    """English display label for a shipment status or tracking status code"""
    value = _value(status)
    if value in STATUS_LABELS:
        return STATUS_LABELS[value]
    return value.replace("_", " ").strip().title()


def is_milestone_complete(event: TrackingEvent) -> bool:
    return _value(event.status) == EventStatus.COMPLETED.value


def is_active(event: TrackingEvent) -> bool:
    return _value(event.status) == EventStatus.IN_PROGRESS.value


def timeline_marker(event: TrackingEvent) -> EventStatus:
    """Marker to draw for a timeline row"""
    if is_milestone_complete(event):
        return EventStatus.COMPLETED
    if is_active(event):
        return EventStatus.IN_PROGRESS
    return EventStatus.PENDING


def order_timeline(history: Sequence[TrackingEvent]) -> List[TrackingEvent]:
    """
    Timeline in display order.

    History is stored newest-first and writers prepend, so this returns the
    sequence as given. No resorting happens here; an event inserted out of
    order stays out of order.
    """
    return list(history)


def latest_event(history: Sequence[TrackingEvent]) -> Optional[TrackingEvent]:
    return history[0] if history else None


def derived_status(history: Sequence[TrackingEvent]) -> Optional[ShipmentStatus]:
    """Shipment status implied by the newest event whose code names one"""
    for event in history:
        if event.status_code in _SHIPMENT_STATUS_VALUES:
            return ShipmentStatus(event.status_code)
    return None


def has_status_drift(shipment: Shipment) -> bool:
    """True when the newest status-bearing event disagrees with ``shipment.status``"""
    implied = derived_status(shipment.tracking_history)
    return implied is not None and implied != shipment.status


__all__ = [
    "ColorToken",
    "STATUS_COLORS",
    "STATUS_LABELS",
    "color_class_for",
    "status_label",
    "is_milestone_complete",
    "is_active",
    "timeline_marker",
    "order_timeline",
    "latest_event",
    "derived_status",
    "has_status_drift",
]
