"""
Unit Tests for ShipmentRepository

Runs the repository against the in-memory store and the real in-process
event bus.
"""

from unittest.mock import AsyncMock

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.shipment_service.models import ShipmentStatus
from microservices.shipment_service.protocols import (
    ConflictError,
    DuplicateTrackingNumberError,
    ShipmentNotFoundError,
    ShipmentValidationError,
    StoreUnavailableError,
)
from microservices.shipment_service.shipment_repository import ShipmentRepository
from microservices.shipment_service.stores import InMemoryShipmentStore
from microservices.shipment_service.validation import TRACKING_NUMBER_PATTERN
from tests.component.mocks import MockEventBus
from tests.fixtures import make_shipment_document, make_shipment_draft, make_tracking_event


class TestCreateShipment:
    """Creation, seeding and uniqueness"""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_seed_event(self, repository, draft):
        shipment = await repository.create_shipment(draft)

        assert shipment.id
        assert shipment.tracking_number == "SHIP0000001"
        assert len(shipment.tracking_history) == 1
        seed = shipment.tracking_history[0]
        assert seed.status_code == "shipment_created"
        assert seed.status == "completed"
        assert seed.location == "New York, USA"
        assert seed.timestamp is not None

    @pytest.mark.asyncio
    async def test_create_generates_tracking_number(self, repository):
        shipment = await repository.create_shipment(make_shipment_draft())
        assert TRACKING_NUMBER_PATTERN.match(shipment.tracking_number)

    @pytest.mark.asyncio
    async def test_duplicate_tracking_number_rejected(self, repository, store, draft):
        """Test the second create with a colliding number fails and the store is unchanged"""
        await repository.create_shipment(draft)
        before = await store.fetch_all()

        with pytest.raises(DuplicateTrackingNumberError):
            await repository.create_shipment(make_shipment_draft(tracking_number="SHIP0000001"))

        assert await store.fetch_all() == before

    @pytest.mark.asyncio
    async def test_tracking_numbers_stay_unique(self, repository):
        created = [await repository.create_shipment(make_shipment_draft()) for _ in range(10)]
        numbers = [s.tracking_number for s in created]
        assert len(set(numbers)) == len(numbers)

    @pytest.mark.asyncio
    async def test_empty_items_rejected_before_store(self, repository, store):
        """Test items=[] fails validation and nothing is persisted"""
        with pytest.raises(ShipmentValidationError) as exc_info:
            await repository.create_shipment(make_shipment_draft(items=[]))

        assert exc_info.value.field == "items"
        assert exc_info.value.reason == "tooShort"
        assert await store.fetch_all() == []

    @pytest.mark.asyncio
    async def test_new_shipments_listed_first(self, repository):
        await repository.create_shipment(make_shipment_draft(tracking_number="SHIP0000001"))
        await repository.create_shipment(make_shipment_draft(tracking_number="SHIP0000002"))

        listed = await repository.list_shipments()

        assert [s.tracking_number for s in listed] == ["SHIP0000002", "SHIP0000001"]


class TestGetShipment:
    """Dual-key lookup"""

    @pytest.mark.asyncio
    async def test_lookup_by_tracking_number_and_id(self, repository, draft):
        created = await repository.create_shipment(draft)

        by_number = await repository.get_shipment(created.tracking_number)
        by_id = await repository.get_shipment(created.id)

        assert by_number.id == by_id.id == created.id

    @pytest.mark.asyncio
    async def test_tracking_number_wins_over_id(self):
        """Test a key matching one shipment's number and another's id resolves by number"""
        store = InMemoryShipmentStore([
            make_shipment_document(shipment_id="SHIP0000009", tracking_number="SHIP0000001"),
            make_shipment_document(shipment_id="other", tracking_number="SHIP0000009"),
        ])
        repository = ShipmentRepository(store)

        shipment = await repository.get_shipment("SHIP0000009")

        assert shipment.id == "other"

    @pytest.mark.asyncio
    async def test_missing_key(self, repository):
        with pytest.raises(ShipmentNotFoundError):
            await repository.get_shipment("SHIP9999999")


class TestUpdateShipment:
    """Shallow merge of top-level fields"""

    @pytest.mark.asyncio
    async def test_merges_provided_fields_only(self, repository, draft):
        created = await repository.create_shipment(draft)

        updated = await repository.update_shipment(
            created.tracking_number,
            {"receiver": {"name": "Emily Davis", "phone": "", "email": ""}},
        )

        assert updated.receiver.name == "Emily Davis"
        assert updated.sender == created.sender
        assert updated.tracking_history == created.tracking_history
        assert updated.revision == created.revision + 1

    @pytest.mark.asyncio
    async def test_tracking_history_replaced_wholesale(self, repository, draft):
        created = await repository.create_shipment(draft)
        await repository.add_tracking_event(created.id, make_tracking_event())

        updated = await repository.update_shipment(created.id, {
            "trackingHistory": [make_tracking_event("delivered", "Seattle, WA")],
        })

        assert [e.status_code for e in updated.tracking_history] == ["delivered"]

    @pytest.mark.asyncio
    async def test_id_is_immutable(self, repository, draft):
        created = await repository.create_shipment(draft)
        with pytest.raises(ShipmentValidationError) as exc_info:
            await repository.update_shipment(created.id, {"id": "new-id"})
        assert exc_info.value.field == "id"

    @pytest.mark.asyncio
    async def test_tracking_number_is_immutable(self, repository, draft):
        created = await repository.create_shipment(draft)
        with pytest.raises(ShipmentValidationError) as exc_info:
            await repository.update_shipment(created.id, {"trackingNumber": "SHIP0000002"})
        assert exc_info.value.field == "trackingNumber"

    @pytest.mark.asyncio
    async def test_invalid_merge_rejected(self, repository, store, draft):
        created = await repository.create_shipment(draft)
        before = await store.fetch_one(created.id)

        with pytest.raises(ShipmentValidationError) as exc_info:
            await repository.update_shipment(created.id, {"items": []})

        assert exc_info.value.reason == "tooShort"
        assert await store.fetch_one(created.id) == before

    @pytest.mark.asyncio
    async def test_missing_shipment(self, repository):
        with pytest.raises(ShipmentNotFoundError):
            await repository.update_shipment("SHIP9999999", {"serviceType": "overnight"})

    @pytest.mark.asyncio
    async def test_status_edit_records_tracking_event(self, repository, store, draft):
        """Test a patched status lands together with its tracking event in one write"""
        created = await repository.create_shipment(draft)
        store.replace = AsyncMock(side_effect=AssertionError("status edits must append an event"))

        updated = await repository.update_shipment(created.id, {"status": "delivered", "serviceType": "overnight"})

        assert updated.status == ShipmentStatus.DELIVERED
        assert updated.service_type.value == "overnight"
        assert [e.status_code for e in updated.tracking_history] == ["delivered", "shipment_created"]
        assert updated.tracking_history[0].location == "New York, USA"
        assert (await store.fetch_one(created.id))["trackingHistory"][0]["statusCode"] == "delivered"

    @pytest.mark.asyncio
    async def test_unchanged_status_adds_no_event(self, repository, draft):
        created = await repository.create_shipment(draft)

        updated = await repository.update_shipment(created.id, {"status": "pending", "serviceType": "overnight"})

        assert len(updated.tracking_history) == 1

    @pytest.mark.asyncio
    async def test_status_edit_with_replaced_history(self, repository, draft):
        created = await repository.create_shipment(draft)

        updated = await repository.update_shipment(created.id, {
            "status": "in_transit",
            "trackingHistory": [make_tracking_event("departed_facility", "Newark, NJ")],
        })

        assert [e.status_code for e in updated.tracking_history] == ["in_transit", "departed_facility"]
        assert updated.tracking_history[0].location == "Newark, NJ"


class TestDeleteShipment:
    """Delete finality"""

    @pytest.mark.asyncio
    async def test_deleted_shipment_is_gone_and_number_reusable(self, repository, draft):
        created = await repository.create_shipment(draft)

        await repository.delete_shipment(created.tracking_number)

        with pytest.raises(ShipmentNotFoundError):
            await repository.get_shipment(created.tracking_number)
        recreated = await repository.create_shipment(make_shipment_draft(tracking_number="SHIP0000001"))
        assert recreated.id != created.id

    @pytest.mark.asyncio
    async def test_delete_missing(self, repository):
        with pytest.raises(ShipmentNotFoundError):
            await repository.delete_shipment("nope")


class TestChangeStatus:
    """Status field and synthesized event written together"""

    @pytest.mark.asyncio
    async def test_status_and_event_visible_together(self, repository, draft):
        created = await repository.create_shipment(draft)

        await repository.change_status(created.id, "delivered")
        shipment = await repository.get_shipment(created.id)

        assert shipment.status == ShipmentStatus.DELIVERED
        assert shipment.tracking_history[0].status_code == "delivered"
        assert shipment.tracking_history[0].status == "completed"

    @pytest.mark.asyncio
    async def test_single_store_write(self, repository, store, draft):
        created = await repository.create_shipment(draft)
        store.replace = AsyncMock(side_effect=AssertionError("status must not be written separately"))

        await repository.change_status(created.id, "processing")

        store.replace.assert_not_called()

    @pytest.mark.asyncio
    async def test_location_falls_back_to_origin(self):
        store = InMemoryShipmentStore([make_shipment_document(tracking_number="SHIP0000005", tracking_history=[])])
        repository = ShipmentRepository(store)

        shipment = await repository.change_status("SHIP0000005", "processing")

        assert shipment.tracking_history[0].location == "New York, USA"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, repository, draft):
        created = await repository.create_shipment(draft)
        with pytest.raises(ShipmentValidationError) as exc_info:
            await repository.change_status(created.id, "teleported")
        assert exc_info.value.reason == "badFormat"

    @pytest.mark.asyncio
    async def test_scenario_processing_then_delivered(self, repository, draft):
        """Test SHIP0000001 through processing and delivered"""
        await repository.create_shipment(draft)
        await repository.update_location("SHIP0000001", "Chicago, IL")

        await repository.change_status("SHIP0000001", "processing")
        before_delivery = await repository.get_shipment("SHIP0000001")
        await repository.change_status("SHIP0000001", "delivered")
        final = await repository.get_shipment("SHIP0000001")

        assert final.status == ShipmentStatus.DELIVERED
        codes = [e.status_code for e in final.tracking_history]
        assert codes == ["delivered", "processing", "location_updated", "shipment_created"]
        assert final.tracking_history[0].location == before_delivery.tracking_history[0].location

    @pytest.mark.asyncio
    async def test_scenario_three_entries(self, repository, draft):
        await repository.create_shipment(draft)

        await repository.change_status("SHIP0000001", "processing")
        await repository.change_status("SHIP0000001", "delivered")
        final = await repository.get_shipment("SHIP0000001")

        assert final.status == ShipmentStatus.DELIVERED
        assert [e.status_code for e in final.tracking_history] == ["delivered", "processing", "shipment_created"]
        assert final.tracking_history[0].location == final.tracking_history[1].location


class TestTrackingEvents:
    """Append-only history"""

    @pytest.mark.asyncio
    async def test_events_prepended_in_reverse_call_order(self, repository, draft):
        created = await repository.create_shipment(draft)
        locations = ["Newark, NJ", "Chicago, IL", "Denver, CO"]

        for location in locations:
            await repository.add_tracking_event(created.id, make_tracking_event("in_transit", location))
        shipment = await repository.get_shipment(created.id)

        assert [e.location for e in shipment.tracking_history[:3]] == list(reversed(locations))
        assert shipment.tracking_history[3] == created.tracking_history[0]

    @pytest.mark.asyncio
    async def test_event_does_not_change_status(self, repository, draft):
        created = await repository.create_shipment(draft)

        shipment = await repository.add_tracking_event(created.id, make_tracking_event("delivered"))

        assert shipment.status == ShipmentStatus.PENDING
        assert repository.status_drift(shipment) == ShipmentStatus.DELIVERED

    @pytest.mark.asyncio
    async def test_timestamp_stamped_when_absent(self, repository, draft):
        created = await repository.create_shipment(draft)
        shipment = await repository.add_tracking_event(created.id, make_tracking_event())
        assert shipment.tracking_history[0].timestamp is not None

    @pytest.mark.asyncio
    async def test_given_timestamp_kept(self, repository, draft):
        created = await repository.create_shipment(draft)
        shipment = await repository.add_tracking_event(
            created.id, make_tracking_event(timestamp="2024-01-02T03:04:05+00:00"),
        )
        assert shipment.tracking_history[0].timestamp.isoformat() == "2024-01-02T03:04:05+00:00"

    @pytest.mark.asyncio
    async def test_update_location(self, repository, draft):
        created = await repository.create_shipment(draft)

        shipment = await repository.update_location(created.id, "Omaha, NE")

        event = shipment.tracking_history[0]
        assert event.status_code == "location_updated"
        assert event.status == "completed"
        assert event.details == "Location updated to Omaha, NE"

    @pytest.mark.asyncio
    async def test_event_without_location_rejected(self, repository, store, draft):
        created = await repository.create_shipment(draft)
        with pytest.raises(ShipmentValidationError):
            await repository.add_tracking_event(created.id, make_tracking_event(location=""))
        assert len((await store.fetch_one(created.id))["trackingHistory"]) == 1


class TestBroadcast:
    """One change notification per successful mutation"""

    @pytest.mark.asyncio
    async def test_notification_types(self, repository, event_bus, recorder, draft):
        created = await repository.create_shipment(draft)
        await repository.update_shipment(created.id, {"serviceType": "overnight"})
        await repository.change_status(created.id, "in_transit")
        await repository.add_tracking_event(created.id, make_tracking_event())
        await repository.update_location(created.id, "Omaha, NE")
        await repository.delete_shipment(created.id)
        await event_bus.drain()

        assert recorder.types == ["created", "updated", "updated", "tracking_updated", "tracking_updated", "deleted"]
        assert recorder.events[-1]["data"] == {"id": created.id, "trackingNumber": "SHIP0000001"}

    @pytest.mark.asyncio
    async def test_failed_call_publishes_nothing(self, repository, event_bus, recorder):
        with pytest.raises(ShipmentValidationError):
            await repository.create_shipment(make_shipment_draft(items=[]))
        with pytest.raises(ShipmentNotFoundError):
            await repository.delete_shipment("SHIP9999999")
        await event_bus.drain()

        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_subscribe_through_repository(self, repository, event_bus, draft):
        received = []
        token = repository.subscribe(received.append)

        await repository.create_shipment(draft)
        await event_bus.drain()
        repository.unsubscribe(token)
        await repository.delete_shipment("SHIP0000001")
        await event_bus.drain()

        assert [m["type"] for m in received] == ["created"]

    @pytest.mark.asyncio
    async def test_broken_bus_does_not_fail_write(self, store, draft):
        bus = MockEventBus()
        bus.set_error(RuntimeError("bus down"))
        repository = ShipmentRepository(store, event_bus=bus)

        shipment = await repository.create_shipment(draft)

        assert await store.fetch_one(shipment.id) is not None


class TestStoreFailures:
    """Failed calls leave the cache untouched"""

    @pytest.mark.asyncio
    async def test_unavailable_store_keeps_cache(self, repository, store, event_bus, recorder, draft):
        created = await repository.create_shipment(draft)
        await repository.list_shipments()
        await event_bus.drain()
        recorder.events.clear()
        store.append_event = AsyncMock(side_effect=StoreUnavailableError("store down"))

        with pytest.raises(StoreUnavailableError):
            await repository.change_status(created.id, "delivered")
        await event_bus.drain()

        cached = repository.cached_shipment("SHIP0000001")
        assert cached.status == ShipmentStatus.PENDING
        assert len(cached.tracking_history) == 1
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_list_failure_propagates(self, repository, store, draft):
        await repository.create_shipment(draft)
        await repository.list_shipments()
        store.fetch_all = AsyncMock(side_effect=StoreUnavailableError("store down"))

        with pytest.raises(StoreUnavailableError):
            await repository.list_shipments()

        assert len(repository.cached_shipments) == 1

    @pytest.mark.asyncio
    async def test_non_document_entries_skipped(self, repository, store, stored_document):
        store.fetch_all = AsyncMock(return_value=[stored_document, "garbage", None, 42])

        shipments = await repository.list_shipments()

        assert [s.tracking_number for s in shipments] == ["SHIP7654321"]


class TestMalformedWriteEcho:
    """A committed write whose echoed document is unreadable still succeeds"""

    @pytest.mark.asyncio
    async def test_create_uses_local_copy(self, repository, store, event_bus, recorder, draft):
        real_insert = store.insert

        async def malformed_insert(document):
            await real_insert(document)
            return {"unexpected": "shape"}

        store.insert = malformed_insert

        shipment = await repository.create_shipment(draft)
        await event_bus.drain()

        assert shipment.tracking_number == "SHIP0000001"
        assert repository.cached_shipment("SHIP0000001") is not None
        assert recorder.types == ["created"]
        assert len(await store.fetch_all()) == 1

    @pytest.mark.asyncio
    async def test_status_change_uses_local_copy(self, repository, store, draft):
        created = await repository.create_shipment(draft)
        real_append = store.append_event

        async def malformed_append(*args, **kwargs):
            await real_append(*args, **kwargs)
            return None

        store.append_event = malformed_append

        shipment = await repository.change_status(created.id, "delivered")

        assert shipment.status == ShipmentStatus.DELIVERED
        assert [e.status_code for e in shipment.tracking_history] == ["delivered", "shipment_created"]
        assert shipment.revision == created.revision + 1
        assert repository.cached_shipment(created.id).status == ShipmentStatus.DELIVERED


class TestOptimisticConcurrency:
    """Stale revisions raise ConflictError when enabled"""

    @pytest.mark.asyncio
    async def test_stale_write_conflicts(self, store, draft):
        repository = ShipmentRepository(store, optimistic_concurrency=True)
        created = await repository.create_shipment(draft)
        stale = await repository.get_shipment(created.id)
        await store.replace(created.id, {"serviceType": "overnight"})
        repository._load = AsyncMock(return_value=stale)

        with pytest.raises(ConflictError) as exc_info:
            await repository.change_status(created.id, "delivered")

        assert exc_info.value.expected_revision == stale.revision
        assert exc_info.value.actual_revision == stale.revision + 1

    @pytest.mark.asyncio
    async def test_last_writer_wins_by_default(self, repository, store, draft):
        created = await repository.create_shipment(draft)
        await store.replace(created.id, {"serviceType": "overnight"})

        shipment = await repository.change_status(created.id, "delivered")

        assert shipment.status == ShipmentStatus.DELIVERED
        assert shipment.service_type == "overnight"


class TestSupplementalOperations:
    """Search, bulk operations and demo data"""

    @pytest.mark.asyncio
    async def test_search_and_filter(self, repository):
        await repository.create_shipment(make_shipment_draft(receiver_name="Emily Davis", destination_city="Seattle"))
        await repository.create_shipment(make_shipment_draft(receiver_name="David Martinez", destination_city="Phoenix"))
        third = await repository.create_shipment(make_shipment_draft(receiver_name="Maria Rodriguez",
                                                                     destination_city="Austin"))
        await repository.change_status(third.id, "delivered")

        assert [s.receiver.name for s in await repository.search_shipments("seattle")] == ["Emily Davis"]
        assert {s.receiver.name for s in await repository.search_shipments("DAVI")} == {"David Martinez", "Emily Davis"}
        delivered = await repository.search_shipments(status="delivered")
        assert [s.id for s in delivered] == [third.id]

    @pytest.mark.asyncio
    async def test_sort_by_nested_field(self, repository):
        for name in ["Carol", "alice", "Bob"]:
            await repository.create_shipment(make_shipment_draft(receiver_name=name))

        ascending = await repository.search_shipments(sort_field="receiver.name", descending=False)

        assert [s.receiver.name for s in ascending] == ["alice", "Bob", "Carol"]

    @pytest.mark.asyncio
    async def test_sort_by_unknown_field_rejected(self, repository):
        with pytest.raises(ShipmentValidationError):
            await repository.search_shipments(sort_field="colour")

    @pytest.mark.asyncio
    async def test_bulk_change_status_stops_at_first_failure(self, repository, draft):
        first = await repository.create_shipment(draft)
        last = await repository.create_shipment(make_shipment_draft())

        with pytest.raises(ShipmentNotFoundError):
            await repository.bulk_change_status([first.id, "missing", last.id], "in_transit")

        assert (await repository.get_shipment(first.id)).status == ShipmentStatus.IN_TRANSIT
        assert (await repository.get_shipment(last.id)).status == ShipmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_bulk_delete(self, repository, store):
        created = [await repository.create_shipment(make_shipment_draft()) for _ in range(3)]

        deleted = await repository.bulk_delete([s.tracking_number for s in created[:2]])

        assert deleted == 2
        assert [d["id"] for d in await store.fetch_all()] == [created[2].id]

    @pytest.mark.asyncio
    async def test_seed_demo_data_only_when_empty(self, repository):
        inserted = await repository.seed_demo_data()
        again = await repository.seed_demo_data()

        listed = await repository.list_shipments()
        assert inserted == len(listed) == 5
        assert again == 0
        assert listed[0].tracking_number == "SHIP1234567"

    @pytest.mark.asyncio
    async def test_health_check(self, repository):
        assert await repository.health_check() is True
