"""
Shipment Validation

Business-rule checks applied before any store call. Field paths use the
wire (camelCase) names, e.g. ``items[0].quantity`` or ``sender.name``.
"""

import random
import re
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .models import (
    Address,
    Contact,
    PackageItem,
    Shipment,
    ShipmentDraft,
    TrackingEventInput,
)
from .protocols import ShipmentValidationError

TRACKING_NUMBER_PREFIX = "SHIP"
TRACKING_NUMBER_PATTERN = re.compile(r"^SHIP\d{7}$")
ADDRESS_FIELDS = ("address", "city", "state", "zip", "country")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ValidationReason(str, Enum):
    REQUIRED = "required"
    TOO_SHORT = "tooShort"
    OUT_OF_RANGE = "outOfRange"
    BAD_FORMAT = "badFormat"


def _fail(field: str, reason: ValidationReason, message: str) -> None:
    raise ShipmentValidationError(field, reason.value, message)


# ====================
# Tracking numbers
# ====================

def generate_tracking_number(existing: Optional[Iterable[str]] = None) -> str:
    """Random ``SHIP`` + 7 digit number not present in ``existing``"""
    taken = set(existing or ())
    while True:
        candidate = f"{TRACKING_NUMBER_PREFIX}{random.randint(0, 9_999_999):07d}"
        if candidate not in taken:
            return candidate


def validate_tracking_number(value: Optional[str], field: str = "trackingNumber") -> None:
    if not value:
        _fail(field, ValidationReason.REQUIRED, "Tracking number is required")
    if not TRACKING_NUMBER_PATTERN.match(value):
        _fail(field, ValidationReason.BAD_FORMAT,
              f"Tracking number must be SHIP followed by 7 digits, got '{value}'")


# ====================
# Field groups
# ====================

def validate_contact(contact: Contact, field: str) -> None:
    if not contact.name.strip():
        _fail(f"{field}.name", ValidationReason.REQUIRED, f"{field} name is required")
    if contact.email and "@" not in contact.email:
        _fail(f"{field}.email", ValidationReason.BAD_FORMAT, f"{field} email is not a valid address")


def validate_address(address: Address, field: str) -> None:
    for name in ADDRESS_FIELDS:
        if not getattr(address, name).strip():
            _fail(f"{field}.{name}", ValidationReason.REQUIRED, f"{field} {name} is required")


def validate_items(items: Sequence[PackageItem]) -> None:
    if not items:
        _fail("items", ValidationReason.TOO_SHORT, "A shipment must contain at least one item")
    for index, item in enumerate(items):
        path = f"items[{index}]"
        if not item.description.strip():
            _fail(f"{path}.description", ValidationReason.REQUIRED, "Item description is required")
        if item.quantity < 1:
            _fail(f"{path}.quantity", ValidationReason.OUT_OF_RANGE, "Item quantity must be at least 1")
        if item.weight < 0:
            _fail(f"{path}.weight", ValidationReason.OUT_OF_RANGE, "Item weight cannot be negative")


# ====================
# Aggregate checks
# ====================

def validate_draft(draft: ShipmentDraft) -> None:
    """Full check for a new shipment, including the delivery date ordering"""
    if draft.tracking_number is not None:
        validate_tracking_number(draft.tracking_number)
    validate_contact(draft.sender, "sender")
    validate_contact(draft.receiver, "receiver")
    validate_address(draft.origin, "origin")
    validate_address(draft.destination, "destination")
    validate_items(draft.items)

    if draft.ship_date and draft.estimated_delivery and draft.estimated_delivery < draft.ship_date:
        _fail("estimatedDelivery", ValidationReason.OUT_OF_RANGE,
              "Estimated delivery cannot be before the ship date")


def validate_shipment(shipment: Shipment) -> None:
    """Check a merged document after an edit. Date ordering is not re-checked."""
    validate_tracking_number(shipment.tracking_number)
    validate_contact(shipment.sender, "sender")
    validate_contact(shipment.receiver, "receiver")
    validate_address(shipment.origin, "origin")
    validate_address(shipment.destination, "destination")
    validate_items(shipment.items)


def validate_event(event: TrackingEventInput) -> None:
    if not event.status_code.strip():
        _fail("statusCode", ValidationReason.REQUIRED, "Tracking event status code is required")
    if not event.location.strip():
        _fail("location", ValidationReason.REQUIRED, "Tracking event location is required")


# ====================
# Raw input parsing
# ====================

_REASON_BY_ERROR_TYPE = {
    "missing": ValidationReason.REQUIRED,
    "too_short": ValidationReason.TOO_SHORT,
    "string_too_short": ValidationReason.TOO_SHORT,
    "greater_than": ValidationReason.OUT_OF_RANGE,
    "greater_than_equal": ValidationReason.OUT_OF_RANGE,
    "less_than": ValidationReason.OUT_OF_RANGE,
    "less_than_equal": ValidationReason.OUT_OF_RANGE,
}


def _field_path(loc: Tuple[Any, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "__root__"


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Build ``model_cls`` from raw input, raising ShipmentValidationError on failure"""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        reason = _REASON_BY_ERROR_TYPE.get(first["type"], ValidationReason.BAD_FORMAT)
        raise ShipmentValidationError(_field_path(first["loc"]), reason.value, first["msg"]) from e


__all__ = [
    "TRACKING_NUMBER_PATTERN",
    "ValidationReason",
    "generate_tracking_number",
    "validate_tracking_number",
    "validate_contact",
    "validate_address",
    "validate_items",
    "validate_draft",
    "validate_shipment",
    "validate_event",
    "parse_model",
]
