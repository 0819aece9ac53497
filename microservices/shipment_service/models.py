"""
Shipment Service Data Models

Pydantic models for shipments, tracking events and API payloads.

Attributes are snake_case; documents exchanged with the store and API
clients use camelCase keys (``trackingNumber``, ``trackingHistory`` ...).
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ====================
# Enum Types
# ====================

class ShipmentStatus(str, Enum):
    """Coarse-grained shipment lifecycle stage"""
    PENDING = "pending"
    LABEL_CREATED = "label_created"
    PROCESSING = "processing"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    ON_HOLD = "on_hold"


class PackageType(str, Enum):
    """Handling class"""
    PACKAGE = "package"
    DOCUMENT = "document"
    PALLET = "pallet"
    OVERSIZE = "oversize"


class ServiceType(str, Enum):
    """Shipping speed tier"""
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"
    INTERNATIONAL = "international"


class WeightUnit(str, Enum):
    KG = "kg"
    LB = "lb"
    G = "g"
    OZ = "oz"


class EventStatus(str, Enum):
    """Whether a tracking entry is a finished milestone or the active one"""
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"


class TrackingStatusCode(str, Enum):
    """Well-known tracking event codes. Events may carry other codes too."""
    SHIPMENT_CREATED = "shipment_created"
    PENDING = "pending"
    LABEL_CREATED = "label_created"
    PROCESSING = "processing"
    ARRIVED_AT_FACILITY = "arrived_at_facility"
    DEPARTED_FACILITY = "departed_facility"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERY_ATTEMPTED = "delivery_attempted"
    DELIVERED = "delivered"
    ON_HOLD = "on_hold"
    EXCEPTION = "exception"
    STATUS_UPDATE = "status_update"
    LOCATION_UPDATED = "location_updated"


class ChangeType(str, Enum):
    """Change notification types broadcast by the repository"""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    TRACKING_UPDATED = "tracking_updated"


# ====================
# Base
# ====================

class WireModel(BaseModel):
    """Base for documents exchanged with the store (camelCase on the wire)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to a JSON-ready camelCase document"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _date_part(value: Any) -> Any:
    # Stored documents sometimes carry full ISO instants for calendar dates
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    if isinstance(value, datetime):
        return value.date()
    return value


# ====================
# Core Data Models
# ====================

class Contact(WireModel):
    """Sender or receiver"""
    name: str = ""
    phone: str = ""
    email: str = ""


class Address(WireModel):
    """Postal address"""
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

    @property
    def city_country(self) -> str:
        return ", ".join(part for part in (self.city, self.country) if part)


class PackageItem(WireModel):
    """One line of a shipment's contents"""
    description: str = ""
    quantity: int = 1
    weight: float = 0
    weight_unit: WeightUnit = WeightUnit.KG
    dimensions: str = ""


class TrackingEvent(WireModel):
    """Immutable tracking history entry"""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    status: EventStatus = EventStatus.COMPLETED
    status_code: str = Field(default=TrackingStatusCode.STATUS_UPDATE.value)
    location: str = ""
    timestamp: Optional[datetime] = None
    details: str = ""


class Shipment(WireModel):
    """Shipment aggregate"""
    id: str = Field(..., description="Opaque id assigned at creation")
    tracking_number: str = Field(..., description="SHIP + 7 digits")
    status: ShipmentStatus = ShipmentStatus.PENDING
    package_type: PackageType = PackageType.PACKAGE
    service_type: ServiceType = ServiceType.STANDARD
    ship_date: Optional[date] = None
    estimated_delivery: Optional[date] = None

    sender: Contact = Field(default_factory=Contact)
    receiver: Contact = Field(default_factory=Contact)
    origin: Address = Field(default_factory=Address)
    destination: Address = Field(default_factory=Address)

    items: List[PackageItem] = Field(default_factory=list)
    tracking_history: List[TrackingEvent] = Field(default_factory=list)

    revision: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("ship_date", "estimated_delivery", mode="before")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        return _date_part(value)

    @property
    def latest_event(self) -> Optional[TrackingEvent]:
        return self.tracking_history[0] if self.tracking_history else None


# ====================
# Command Payloads
# ====================

class ShipmentDraft(WireModel):
    """Input for creating a shipment. Tracking number is generated if omitted."""
    tracking_number: Optional[str] = None
    status: ShipmentStatus = ShipmentStatus.PENDING
    package_type: PackageType = PackageType.PACKAGE
    service_type: ServiceType = ServiceType.STANDARD
    ship_date: Optional[date] = None
    estimated_delivery: Optional[date] = None

    sender: Contact = Field(default_factory=Contact)
    receiver: Contact = Field(default_factory=Contact)
    origin: Address = Field(default_factory=Address)
    destination: Address = Field(default_factory=Address)

    items: List[PackageItem] = Field(default_factory=list)

    @field_validator("ship_date", "estimated_delivery", mode="before")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        return _date_part(value)


class ShipmentPatch(WireModel):
    """Partial update. Only fields that were explicitly set are merged."""
    tracking_number: Optional[str] = None
    status: Optional[ShipmentStatus] = None
    package_type: Optional[PackageType] = None
    service_type: Optional[ServiceType] = None
    ship_date: Optional[date] = None
    estimated_delivery: Optional[date] = None

    sender: Optional[Contact] = None
    receiver: Optional[Contact] = None
    origin: Optional[Address] = None
    destination: Optional[Address] = None

    items: Optional[List[PackageItem]] = None
    tracking_history: Optional[List[TrackingEvent]] = None

    @field_validator("ship_date", "estimated_delivery", mode="before")
    @classmethod
    def normalize_dates(cls, value: Any) -> Any:
        return _date_part(value)

    def changes(self) -> Dict[str, Any]:
        """camelCase document of the explicitly provided top-level fields"""
        document = self.model_dump(mode="json", by_alias=True)
        return {to_camel(name): document[to_camel(name)] for name in self.model_fields_set}


class TrackingEventInput(WireModel):
    """Input for adding a tracking event"""
    status: EventStatus = EventStatus.IN_PROGRESS
    status_code: str = TrackingStatusCode.STATUS_UPDATE.value
    location: str = ""
    timestamp: Optional[datetime] = None
    details: str = ""


class StatusChangeRequest(WireModel):
    status: ShipmentStatus


class LocationUpdateRequest(WireModel):
    location: str
    details: str = ""


class BulkStatusRequest(WireModel):
    keys: List[str]
    status: ShipmentStatus


class BulkDeleteRequest(WireModel):
    keys: List[str]


# ====================
# Response Models
# ====================

class ShipmentListResponse(BaseModel):
    shipments: List[Dict[str, Any]]
    count: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    store_backend: str
    store_healthy: bool


__all__ = [
    "ShipmentStatus",
    "PackageType",
    "ServiceType",
    "WeightUnit",
    "EventStatus",
    "TrackingStatusCode",
    "ChangeType",
    "WireModel",
    "Contact",
    "Address",
    "PackageItem",
    "TrackingEvent",
    "Shipment",
    "ShipmentDraft",
    "ShipmentPatch",
    "TrackingEventInput",
    "StatusChangeRequest",
    "LocationUpdateRequest",
    "BulkStatusRequest",
    "BulkDeleteRequest",
    "ShipmentListResponse",
    "HealthResponse",
]
