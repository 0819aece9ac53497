"""
Shipment Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import Any, Callable, Dict, List, Optional, Protocol


# ====================
# Store Protocol
# ====================


class ShipmentStoreProtocol(Protocol):
    """
    Protocol for the remote shipment document store.

    Documents are plain camelCase dicts. Every adapter resolves ``key``
    against the tracking number first and the id second.
    """

    async def fetch_all(self) -> List[Dict[str, Any]]:
        """Fetch the whole collection"""
        ...

    async def fetch_one(self, key: str) -> Optional[Dict[str, Any]]:
        """Fetch one document by tracking number or id"""
        ...

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a full document, returning the stored copy"""
        ...

    async def replace(
        self,
        key: str,
        fields: Dict[str, Any],
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        """Merge top-level fields into a document"""
        ...

    async def delete(self, key: str) -> None:
        """Remove a document permanently"""
        ...

    async def append_event(
        self,
        key: str,
        event: Dict[str, Any],
        updates: Optional[Dict[str, Any]] = None,
        expected_revision: Optional[int] = None
    ) -> Dict[str, Any]:
        """Prepend a tracking event, optionally merging fields in the same write"""
        ...

    async def health_check(self) -> bool:
        """Whether the store is reachable"""
        ...

    async def close(self) -> None:
        """Release connections"""
        ...


# ====================
# Event Bus Protocol
# ====================


class EventBusProtocol(Protocol):
    """Protocol for the change-notification bus"""

    def subscribe(self, handler: Callable[[Dict[str, Any]], Any]) -> str:
        """Register a handler, returning a subscription token"""
        ...

    def unsubscribe(self, token: str) -> bool:
        """Remove a handler"""
        ...

    def publish(self, event_type: str, data: Dict[str, Any]) -> None:
        """Fire-and-forget publish; must not block the caller"""
        ...

    async def close(self) -> None:
        """Close event bus"""
        ...


# ====================
# Custom Exceptions
# ====================


class ShipmentServiceError(Exception):
    """Base exception for shipment service errors"""
    pass


class ShipmentValidationError(ShipmentServiceError):
    """Raised when input fails validation. Never sent to the store."""

    def __init__(self, field: str, reason: str, message: Optional[str] = None):
        super().__init__(message or f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "reason": self.reason, "message": str(self)}


class DuplicateTrackingNumberError(ShipmentServiceError):
    """Raised when a tracking number is already in use"""

    def __init__(self, tracking_number: str):
        super().__init__(f"Shipment with tracking number {tracking_number} already exists")
        self.tracking_number = tracking_number


class ShipmentNotFoundError(ShipmentServiceError):
    """Raised when a key resolves to no shipment"""

    def __init__(self, key: str):
        super().__init__(f"Shipment not found: {key}")
        self.key = key


class StoreUnavailableError(ShipmentServiceError):
    """Raised when the store cannot be reached or answers with a failure"""
    pass


class ConflictError(ShipmentServiceError):
    """Raised when a write carries a stale revision"""

    def __init__(self, key: str, expected_revision: Optional[int] = None, actual_revision: Optional[int] = None):
        super().__init__(
            f"Shipment {key} was modified concurrently "
            f"(expected revision {expected_revision}, found {actual_revision})"
        )
        self.key = key
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision


__all__ = [
    "ShipmentStoreProtocol",
    "EventBusProtocol",
    "ShipmentServiceError",
    "ShipmentValidationError",
    "DuplicateTrackingNumberError",
    "ShipmentNotFoundError",
    "StoreUnavailableError",
    "ConflictError",
]
