"""
Shipment Service Event Models

Change notifications broadcast by the shipment repository.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field

from ..models import ChangeType


class ShipmentStreamConfig:
    """Broadcast channel configuration for shipment_service"""
    CHANNEL_NAME = "shipments-updated"
    SOURCE = "shipment_service"


class ShipmentChangeEvent(BaseModel):
    """
    Advisory change notification.

    Consumers treat it as a hint to refetch, never as the source of truth:
    by the time it is delivered the store may already hold a newer state.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: ChangeType
    data: Dict[str, Any] = Field(default_factory=dict)
    source: str = ShipmentStreamConfig.SOURCE
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
