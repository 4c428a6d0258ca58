# backend/tests/unit/services/test_realtime_booking_service.py
import asyncio
from datetime import datetime, timezone

import pytest

from carenow.models.booking import Booking
from carenow.schemas.realtime import BookingRealtimeData, LocationData
from carenow.services.realtime_booking_service import RealtimeBookingService, booking_channel


async def take(updates, count, timeout=2.0):
    async def _collect():
        items = []
        async for item in updates:
            items.append(item)
            if len(items) == count:
                return items
        return items

    return await asyncio.wait_for(_collect(), timeout)


@pytest.fixture
def realtime(broadcast, test_settings):
    return RealtimeBookingService(broadcast, test_settings)


def test_channel_name():
    assert booking_channel("abc") == "booking:abc"


@pytest.mark.asyncio
async def test_identical_snapshots_are_both_forwarded(realtime):
    data = BookingRealtimeData(
        booking_id="b1", status="confirmed", last_updated=datetime(2030, 1, 15, tzinfo=timezone.utc)
    )
    async with realtime.subscribe("b1") as updates:
        await realtime.publish(data)
        await realtime.publish(data)
        received = await take(updates, 2)

    assert received == [data, data]


@pytest.mark.asyncio
async def test_updates_merge_into_snapshot(realtime, test_settings):
    async with realtime.subscribe("b2") as updates:
        await realtime.initialize_tracking("b2")
        await realtime.update_status("b2", "confirmed", message="Partner accepted")
        location = LocationData(latitude=10.77, longitude=106.70, timestamp=datetime.now(timezone.utc))
        await realtime.update_partner_location("b2", location)
        received = await take(updates, 3)

    assert [d.status for d in received] == ["pending", "confirmed", "confirmed"]
    assert received[1].messages[0].message == "Partner accepted"
    assert received[2].is_partner_en_route
    assert received[2].partner_location == location
    assert received[2].messages == received[1].messages
    assert realtime.get_snapshot("b2") == received[2]


@pytest.mark.asyncio
async def test_message_history_is_capped(broadcast, test_settings):
    settings = test_settings.model_copy(update={"realtime_message_history": 3})
    realtime = RealtimeBookingService(broadcast, settings)
    for i in range(5):
        await realtime.update_status("b3", "confirmed", message=f"m{i}")
    assert [m.message for m in realtime.get_snapshot("b3").messages] == ["m2", "m3", "m4"]


@pytest.mark.asyncio
async def test_channels_are_isolated(realtime):
    async with realtime.subscribe("mine") as updates:
        await realtime.initialize_tracking("other")
        await realtime.initialize_tracking("mine")
        received = await take(updates, 1)
    assert received[0].booking_id == "mine"


@pytest.mark.asyncio
async def test_stop_tracking_forgets_snapshot(realtime):
    await realtime.initialize_tracking("b4")
    realtime.stop_tracking("b4")
    assert realtime.get_snapshot("b4") is None


@pytest.mark.asyncio
async def test_publish_booking_status_from_worker_thread(realtime):
    realtime.bind_loop()
    booking = Booking(id="b5", status="cancelled")
    async with realtime.subscribe("b5") as updates:
        future = await asyncio.to_thread(realtime.publish_booking_status, booking, "Booking cancelled")
        await asyncio.wrap_future(future)
        received = await take(updates, 1)
    assert received[0].status == "cancelled"
    assert received[0].messages[-1].message == "Booking cancelled"


@pytest.mark.asyncio
async def test_publish_booking_status_on_loop_thread(realtime):
    realtime.bind_loop()
    task = realtime.publish_booking_status(Booking(id="b6", status="confirmed"))
    await task
    assert realtime.get_snapshot("b6").status == "confirmed"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["completed", "cancelled"])
async def test_terminal_status_releases_snapshot(realtime, status):
    realtime.bind_loop()
    await realtime.update_status("b8", "in_progress", "Care session started")
    async with realtime.subscribe("b8") as updates:
        await realtime.publish_booking_status(Booking(id="b8", status=status), "Done")
        received = await take(updates, 1)

    assert received[0].status == status
    assert [m.message for m in received[0].messages] == ["Care session started", "Done"]
    assert realtime.get_snapshot("b8") is None


def test_publish_booking_status_without_loop_is_noop(test_settings):
    realtime = RealtimeBookingService(settings=test_settings)
    assert realtime.publish_booking_status(Booking(id="b7", status="pending")) is None
