"""
Shipment Repository

Single point of truth for reading and mutating shipment documents.

Responsibilities:
- Validate commands before anything reaches the store
- Forward reads and writes to the injected ShipmentStore adapter
- Keep an in-process view (cache) of the shipments last seen
- Broadcast change notifications through the injected event bus

Uses dependency injection for testability:
- The store adapter is injected, never created here
- The event bus defaults to a private InProcessEventBus
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .events import (
    InProcessEventBus,
    publish_shipment_created,
    publish_shipment_deleted,
    publish_shipment_updated,
    publish_tracking_updated,
)
from .models import (
    EventStatus,
    Shipment,
    ShipmentDraft,
    ShipmentPatch,
    ShipmentStatus,
    TrackingEvent,
    TrackingEventInput,
    TrackingStatusCode,
)
from .protocols import (
    EventBusProtocol,
    DuplicateTrackingNumberError,
    ShipmentNotFoundError,
    ShipmentStoreProtocol,
    ShipmentValidationError,
    StoreUnavailableError,
)
from .status_engine import derived_status, has_status_drift, status_label
from .validation import (
    ValidationReason,
    generate_tracking_number,
    parse_model,
    validate_draft,
    validate_event,
    validate_shipment,
)

logger = logging.getLogger(__name__)

# Sort keys accepted by search_shipments besides top-level attributes
NESTED_SORT_FIELDS = {
    "receiver.name": lambda s: s.receiver.name.lower(),
    "destination.city": lambda s: s.destination.city.lower(),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ShipmentRepository:
    """
    Shipment document synchronization layer

    Every mutating call either completes against the store, updates the
    cache and publishes one change notification, or raises and leaves the
    cache untouched. No locks are held across calls; concurrent writers
    follow last-writer-wins unless ``optimistic_concurrency`` is enabled.
    """

    def __init__(
        self,
        store: ShipmentStoreProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        optimistic_concurrency: bool = False,
    ):
        """
        Initialize repository with injected dependencies.

        Args:
            store: Shipment store adapter
            event_bus: Change-notification bus (a private one when omitted)
            optimistic_concurrency: Send the read revision with edits and
                status changes so stale writes raise ConflictError
        """
        self.store = store
        self.event_bus = event_bus if event_bus is not None else InProcessEventBus()
        self.optimistic_concurrency = optimistic_concurrency
        self._cache: Dict[str, Shipment] = {}

    # ====================
    # Cache
    # ====================

    @property
    def cached_shipments(self) -> List[Shipment]:
        """Shipments as last seen, without I/O"""
        return list(self._cache.values())

    def cached_shipment(self, key: str) -> Optional[Shipment]:
        for shipment in self._cache.values():
            if shipment.tracking_number == key:
                return shipment
        return self._cache.get(key)

    def _remember(self, shipment: Shipment, front: bool = False) -> None:
        if front:
            self._cache = {shipment.id: shipment, **{k: v for k, v in self._cache.items() if k != shipment.id}}
        else:
            self._cache[shipment.id] = shipment

    # ====================
    # Document conversion
    # ====================

    @staticmethod
    def _to_shipment(document: Dict[str, Any]) -> Shipment:
        try:
            return Shipment.model_validate(document)
        except PydanticValidationError as e:
            raise StoreUnavailableError(
                f"Store returned a malformed shipment document: {e.errors()[0]['msg']}"
            ) from e

    @staticmethod
    def _stored_or_local(document: Any, local: Shipment, action: str) -> Shipment:
        """
        Parse the document a store returned after a committed write.

        The write already happened, so a malformed echo is logged and the
        locally computed shipment stands in for it.
        """
        try:
            return Shipment.model_validate(document)
        except PydanticValidationError as e:
            logger.error(
                f"Store committed {action} of {local.tracking_number} but returned a malformed "
                f"document, using the local copy: {e.errors()[0]['msg']}"
            )
            return local

    def _revision(self, shipment: Shipment) -> Optional[int]:
        return shipment.revision if self.optimistic_concurrency else None

    @staticmethod
    def _status_event(shipment: Shipment, new_status: ShipmentStatus) -> TrackingEvent:
        """Completed event for a status change, at the latest event's location"""
        latest = shipment.latest_event
        location = latest.location if latest and latest.location else shipment.origin.city_country
        return TrackingEvent(
            id=uuid.uuid4().hex,
            status=EventStatus.COMPLETED,
            status_code=new_status.value,
            location=location,
            timestamp=_now(),
            details=status_label(new_status),
        )

    @staticmethod
    def _advanced(shipment: Shipment, **updates: Any) -> Shipment:
        """Local copy of ``shipment`` after one more committed write"""
        return shipment.model_copy(update={"revision": shipment.revision + 1, "updated_at": _now(), **updates})

    async def _load(self, key: str) -> Shipment:
        document = await self.store.fetch_one(key)
        if document is None:
            raise ShipmentNotFoundError(key)
        return self._to_shipment(document)

    # ====================
    # Reads
    # ====================

    async def list_shipments(self) -> List[Shipment]:
        """
        Fetch the whole collection and replace the in-process view.

        Raises:
            StoreUnavailableError: If the store cannot be reached
        """
        try:
            documents = await self.store.fetch_all()
        except StoreUnavailableError as e:
            logger.error(f"Failed to list shipments: {e}")
            raise

        shipments = []
        for document in documents:
            try:
                shipments.append(Shipment.model_validate(document))
            except PydanticValidationError as e:
                document_id = document.get("id") if isinstance(document, dict) else type(document).__name__
                logger.warning(f"Skipping malformed shipment document {document_id}: {e.errors()[0]['msg']}")

        self._cache = {shipment.id: shipment for shipment in shipments}
        return shipments

    async def refresh(self) -> List[Shipment]:
        """Refetch after a change notification"""
        return await self.list_shipments()

    async def get_shipment(self, key: str) -> Shipment:
        """
        Get a shipment by tracking number or id (tracking number wins).

        Raises:
            ShipmentNotFoundError: If neither matches
        """
        shipment = await self._load(key)
        self._remember(shipment)
        return shipment

    async def search_shipments(
        self,
        term: str = "",
        status: Optional[Union[ShipmentStatus, str]] = None,
        sort_field: str = "ship_date",
        descending: bool = True,
    ) -> List[Shipment]:
        """
        Filter and sort the collection the way the admin list does.

        ``term`` matches tracking number, receiver name and destination city,
        case-insensitively. ``sort_field`` is a snake_case or camelCase
        top-level attribute, or ``receiver.name`` / ``destination.city``.
        """
        shipments = await self.list_shipments()

        needle = term.strip().lower()
        if needle:
            shipments = [
                s for s in shipments
                if needle in s.tracking_number.lower()
                or needle in s.receiver.name.lower()
                or needle in s.destination.city.lower()
            ]
        if status:
            try:
                wanted = ShipmentStatus(status)
            except ValueError:
                raise ShipmentValidationError("status", ValidationReason.BAD_FORMAT.value,
                                              f"Unknown shipment status '{status}'") from None
            shipments = [s for s in shipments if s.status == wanted]

        return sorted(shipments, key=self._sort_key(sort_field), reverse=descending)

    @staticmethod
    def _sort_key(sort_field: str) -> Callable[[Shipment], Any]:
        if sort_field in NESTED_SORT_FIELDS:
            return NESTED_SORT_FIELDS[sort_field]

        attribute = None
        for name, info in Shipment.model_fields.items():
            if sort_field in (name, info.alias):
                attribute = name
                break
        if attribute is None or attribute in ("tracking_history", "items", "sender", "receiver", "origin", "destination"):
            raise ShipmentValidationError("sort", ValidationReason.BAD_FORMAT.value,
                                          f"Cannot sort shipments by '{sort_field}'")

        def key(shipment: Shipment) -> Any:
            value = getattr(shipment, attribute)
            # None sorts first so missing dates never compare against dates
            return (value is not None, value.value if hasattr(value, "value") else value)
        return key

    # ====================
    # Writes
    # ====================

    async def create_shipment(self, draft: Union[ShipmentDraft, Dict[str, Any]]) -> Shipment:
        """
        Create a shipment with its seed tracking event.

        Raises:
            ShipmentValidationError: If the draft is invalid
            DuplicateTrackingNumberError: If the tracking number is in use
            StoreUnavailableError: If the store cannot be reached
        """
        draft = parse_model(ShipmentDraft, draft)
        validate_draft(draft)

        existing = {document.get("trackingNumber") for document in await self.store.fetch_all()}
        tracking_number = draft.tracking_number
        if tracking_number is None:
            tracking_number = generate_tracking_number(existing)
        elif tracking_number in existing:
            raise DuplicateTrackingNumberError(tracking_number)

        now = _now()
        seed = TrackingEvent(
            id=uuid.uuid4().hex,
            status=EventStatus.COMPLETED,
            status_code=TrackingStatusCode.SHIPMENT_CREATED.value,
            location=draft.origin.city_country,
            timestamp=now,
            details="Shipment created",
        )
        shipment = Shipment(
            **draft.model_dump(exclude={"tracking_number"}),
            id=uuid.uuid4().hex,
            tracking_number=tracking_number,
            tracking_history=[seed],
            created_at=now,
            updated_at=now,
        )

        try:
            document = await self.store.insert(shipment.to_document())
        except StoreUnavailableError as e:
            logger.error(f"Failed to create shipment {tracking_number}: {e}")
            raise
        stored = self._stored_or_local(document, shipment, "create")

        self._remember(stored, front=True)
        logger.info(f"Created shipment {stored.tracking_number} ({stored.id})")
        publish_shipment_created(self.event_bus, stored)
        return stored

    async def update_shipment(self, key: str, patch: Union[ShipmentPatch, Dict[str, Any]]) -> Shipment:
        """
        Shallow-merge the provided top-level fields into a shipment.

        A provided ``trackingHistory`` replaces the whole array. ``id`` and
        ``trackingNumber`` cannot be changed. A ``status`` that differs from
        the current one is applied like ``change_status``: its tracking event
        is prepended in the same store write.

        Raises:
            ShipmentValidationError: If the merged document is invalid
            ShipmentNotFoundError: If the key resolves to nothing
            ConflictError: On a stale revision (optimistic mode only)
        """
        if isinstance(patch, dict) and "id" in patch:
            raise ShipmentValidationError("id", ValidationReason.BAD_FORMAT.value, "Shipment id cannot be changed")
        patch = parse_model(ShipmentPatch, patch)
        changes = patch.changes()

        current = await self._load(key)
        if "trackingNumber" in changes and changes["trackingNumber"] != current.tracking_number:
            raise ShipmentValidationError("trackingNumber", ValidationReason.BAD_FORMAT.value,
                                          "Tracking number cannot be changed")
        changes.pop("trackingNumber", None)
        if changes.get("status") == current.status.value:
            changes.pop("status")
        if not changes:
            return current

        merged = parse_model(Shipment, {**current.to_document(), **changes})
        validate_shipment(merged)

        status_event = self._status_event(merged, merged.status) if "status" in changes else None
        history = [status_event] + merged.tracking_history if status_event else merged.tracking_history
        local = self._advanced(merged, tracking_history=history)

        try:
            if status_event is None:
                document = await self.store.replace(current.id, changes, expected_revision=self._revision(current))
            elif "trackingHistory" in changes:
                changes["trackingHistory"] = [status_event.to_document()] + changes["trackingHistory"]
                document = await self.store.replace(current.id, changes, expected_revision=self._revision(current))
            else:
                document = await self.store.append_event(
                    current.id,
                    status_event.to_document(),
                    updates=changes,
                    expected_revision=self._revision(current),
                )
        except StoreUnavailableError as e:
            logger.error(f"Failed to update shipment {current.tracking_number}: {e}")
            raise

        stored = self._stored_or_local(document, local, "update")
        self._remember(stored)
        logger.info(f"Updated shipment {stored.tracking_number}: {', '.join(sorted(changes))}")
        publish_shipment_updated(self.event_bus, stored)
        return stored

    async def delete_shipment(self, key: str) -> None:
        """
        Permanently delete a shipment.

        Raises:
            ShipmentNotFoundError: If the key resolves to nothing
        """
        current = await self._load(key)
        try:
            await self.store.delete(current.id)
        except StoreUnavailableError as e:
            logger.error(f"Failed to delete shipment {current.tracking_number}: {e}")
            raise

        self._cache.pop(current.id, None)
        logger.info(f"Deleted shipment {current.tracking_number} ({current.id})")
        publish_shipment_deleted(self.event_bus, current.id, current.tracking_number)

    async def change_status(self, key: str, new_status: Union[ShipmentStatus, str]) -> Shipment:
        """
        Set ``status`` and prepend the matching tracking event in one write.

        The event is placed at the latest event's location, falling back to
        the origin city and country.
        """
        try:
            new_status = ShipmentStatus(new_status)
        except ValueError:
            raise ShipmentValidationError("status", ValidationReason.BAD_FORMAT.value,
                                          f"Unknown shipment status '{new_status}'") from None

        current = await self._load(key)
        event = self._status_event(current, new_status)

        try:
            document = await self.store.append_event(
                current.id,
                event.to_document(),
                updates={"status": new_status.value},
                expected_revision=self._revision(current),
            )
        except StoreUnavailableError as e:
            logger.error(f"Failed to change status of {current.tracking_number}: {e}")
            raise

        local = self._advanced(current, status=new_status, tracking_history=[event] + current.tracking_history)
        stored = self._stored_or_local(document, local, "status change")
        self._remember(stored)
        logger.info(f"Shipment {stored.tracking_number} status {current.status.value} -> {new_status.value}")
        publish_shipment_updated(self.event_bus, stored)
        return stored

    async def add_tracking_event(
        self,
        key: str,
        event: Union[TrackingEventInput, Dict[str, Any]],
    ) -> Shipment:
        """
        Prepend a tracking event. ``status`` is left alone.

        Raises:
            ShipmentValidationError: If the event lacks a code or location
            ShipmentNotFoundError: If the key resolves to nothing
        """
        event = parse_model(TrackingEventInput, event)
        validate_event(event)

        current = await self._load(key)
        entry = TrackingEvent(
            id=uuid.uuid4().hex,
            status=event.status,
            status_code=event.status_code,
            location=event.location,
            timestamp=event.timestamp or _now(),
            details=event.details,
        )

        try:
            document = await self.store.append_event(current.id, entry.to_document())
        except StoreUnavailableError as e:
            logger.error(f"Failed to add tracking event to {current.tracking_number}: {e}")
            raise

        local = self._advanced(current, tracking_history=[entry] + current.tracking_history)
        stored = self._stored_or_local(document, local, "tracking event")
        self._remember(stored)
        if has_status_drift(stored):
            logger.warning(
                f"Shipment {stored.tracking_number} status is {stored.status.value} but its latest "
                f"status event says {derived_status(stored.tracking_history).value}"
            )
        logger.info(f"Added {entry.status_code} event to {stored.tracking_number}")
        publish_tracking_updated(self.event_bus, stored)
        return stored

    async def update_location(self, key: str, location: str, details: str = "") -> Shipment:
        """Record a completed ``location_updated`` event"""
        return await self.add_tracking_event(
            key,
            TrackingEventInput(
                status=EventStatus.COMPLETED,
                status_code=TrackingStatusCode.LOCATION_UPDATED.value,
                location=location,
                details=details or f"Location updated to {location}",
            ),
        )

    # ====================
    # Bulk operations
    # ====================

    async def bulk_change_status(self, keys: Iterable[str], new_status: Union[ShipmentStatus, str]) -> List[Shipment]:
        """Change status one shipment at a time; the first failure propagates"""
        return [await self.change_status(key, new_status) for key in keys]

    async def bulk_delete(self, keys: Iterable[str]) -> int:
        """Delete one shipment at a time; the first failure propagates"""
        deleted = 0
        for key in keys:
            await self.delete_shipment(key)
            deleted += 1
        return deleted

    async def seed_demo_data(self, drafts: Optional[Iterable[Dict[str, Any]]] = None) -> int:
        """
        Insert demo shipments when the store is empty.

        Returns:
            Number of shipments inserted (0 when the store already has data)
        """
        if await self.store.fetch_all():
            logger.info("Store already holds shipments, skipping demo data")
            return 0

        if drafts is None:
            from .demo_data import demo_shipments
            drafts = demo_shipments()

        inserted = 0
        # Stores prepend, so insert oldest first to keep the list order
        for document in reversed(list(drafts)):
            shipment = parse_model(Shipment, {**document, "id": document.get("id") or uuid.uuid4().hex})
            validate_shipment(shipment)
            document = await self.store.insert(shipment.to_document())
            self._remember(self._stored_or_local(document, shipment, "seed"), front=True)
            inserted += 1
        logger.info(f"Seeded {inserted} demo shipments")
        return inserted

    # ====================
    # Subscriptions & health
    # ====================

    def subscribe(self, handler: Callable[[Dict[str, Any]], Any]) -> str:
        return self.event_bus.subscribe(handler)

    def unsubscribe(self, token: str) -> bool:
        return self.event_bus.unsubscribe(token)

    @staticmethod
    def status_drift(shipment: Shipment) -> Optional[ShipmentStatus]:
        """The status implied by history when it disagrees with ``shipment.status``"""
        return derived_status(shipment.tracking_history) if has_status_drift(shipment) else None

    async def health_check(self) -> bool:
        return await self.store.health_check()


__all__ = ["ShipmentRepository"]
