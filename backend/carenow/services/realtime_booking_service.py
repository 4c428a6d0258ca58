# backend/carenow/services/realtime_booking_service.py
"""
Realtime booking status bridge.

Publishes BookingRealtimeData snapshots on ``booking:{id}`` broadcaster
channels and exposes subscriptions as async iterators of snapshots.

Delivery semantics:
- every published message reaches every current subscriber, in order
- identical consecutive snapshots are forwarded as-is (no dedup/debounce)
- a subscriber that joins late does not get earlier snapshots replayed
- no reconnect; callers re-subscribe after a failure
"""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import TYPE_CHECKING, AsyncIterator, Dict, Optional, Union

from broadcaster import Broadcast

from ..core.broadcast import get_broadcast
from ..core.config import Settings, settings as default_settings
from ..core.constants import BOOKING_CHANNEL_PREFIX
from ..schemas.realtime import BookingRealtimeData, LocationData, RealtimeMessage

if TYPE_CHECKING:
    from ..models.booking import Booking

logger = logging.getLogger(__name__)


def booking_channel(booking_id: str) -> str:
    return f"{BOOKING_CHANNEL_PREFIX}{booking_id}"


class RealtimeBookingService:
    """Publishes and subscribes to live booking snapshots."""

    def __init__(
        self,
        broadcast: Optional[Broadcast] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._broadcast = broadcast
        self.settings = settings or default_settings
        self._snapshots: Dict[str, BookingRealtimeData] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def broadcast(self) -> Broadcast:
        return self._broadcast or get_broadcast()

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Remember the event loop that owns the broadcast connection.

        Needed by publish_booking_status, which is called from worker threads.
        """
        self._loop = loop or asyncio.get_running_loop()

    def get_snapshot(self, booking_id: str) -> Optional[BookingRealtimeData]:
        return self._snapshots.get(booking_id)

    async def publish(self, data: BookingRealtimeData) -> None:
        """Forward a snapshot verbatim to the booking's channel."""
        self._snapshots[data.booking_id] = data
        await self.broadcast.publish(channel=booking_channel(data.booking_id), message=data.to_message())
        self.logger.debug(f"[REALTIME] Published {data.status} for booking {data.booking_id}")

    async def initialize_tracking(self, booking_id: str, status: str = "pending") -> BookingRealtimeData:
        data = BookingRealtimeData(
            booking_id=booking_id,
            status=status,
            last_updated=datetime.now(timezone.utc),
        )
        await self.publish(data)
        self.logger.info(f"[REALTIME] Tracking started for booking {booking_id}")
        return data

    async def update_status(
        self,
        booking_id: str,
        status: str,
        message: Optional[str] = None,
        partner_location: Optional[LocationData] = None,
        estimated_arrival: Optional[datetime] = None,
    ) -> BookingRealtimeData:
        """Merge a status change into the current snapshot and publish it."""
        now = datetime.now(timezone.utc)
        current = self._snapshots.get(booking_id) or BookingRealtimeData(
            booking_id=booking_id, status=status, last_updated=now
        )

        messages = list(current.messages)
        if message:
            messages.append(RealtimeMessage(message=message, timestamp=now))
        messages = messages[-self.settings.realtime_message_history :]

        data = current.model_copy(
            update={
                "status": status,
                "last_updated": now,
                "messages": messages,
                "partner_location": partner_location or current.partner_location,
                "estimated_arrival": estimated_arrival or current.estimated_arrival,
            }
        )
        await self.publish(data)
        return data

    async def update_partner_location(
        self, booking_id: str, location: LocationData
    ) -> BookingRealtimeData:
        now = datetime.now(timezone.utc)
        current = self._snapshots.get(booking_id) or BookingRealtimeData(
            booking_id=booking_id, status="confirmed", last_updated=now
        )
        data = current.model_copy(
            update={"partner_location": location, "is_partner_en_route": True, "last_updated": now}
        )
        await self.publish(data)
        return data

    @asynccontextmanager
    async def subscribe(self, booking_id: str) -> AsyncIterator[AsyncIterator[BookingRealtimeData]]:
        """
        Subscribe to a booking's snapshots.

        Usage:
            async with realtime.subscribe(booking_id) as updates:
                async for data in updates:
                    ...
        """
        channel = booking_channel(booking_id)
        async with self.broadcast.subscribe(channel=channel) as subscriber:
            self.logger.info(f"[REALTIME] Subscribed to {channel}")

            async def _updates() -> AsyncIterator[BookingRealtimeData]:
                async for event in subscriber:
                    yield BookingRealtimeData.from_message(event.message)

            try:
                yield _updates()
            finally:
                self.logger.info(f"[REALTIME] Unsubscribed from {channel}")

    def stop_tracking(self, booking_id: str) -> None:
        self._snapshots.pop(booking_id, None)
        self.logger.info(f"[REALTIME] Tracking stopped for booking {booking_id}")

    def publish_booking_status(
        self, booking: "Booking", message: Optional[str] = None
    ) -> Optional[Union[Future, asyncio.Task]]:
        """
        Schedule an update_status for a persisted booking.

        Safe to call from the event loop or from a worker thread. Returns the
        scheduled task/future, or None when no loop is bound. The snapshot of
        a booking that reached a terminal status is released once published.
        """
        if self._loop is None or self._loop.is_closed():
            self.logger.debug(
                f"[REALTIME] No event loop bound; skipping status publish for {booking.id}"
            )
            return None

        coro = self._publish_status(
            booking.id, booking.status, message, release=booking.status_enum.is_terminal
        )
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            return self._loop.create_task(coro)

        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(self._log_publish_failure)
        return future

    async def _publish_status(
        self, booking_id: str, status: str, message: Optional[str], release: bool
    ) -> BookingRealtimeData:
        data = await self.update_status(booking_id, status, message)
        if release:
            self._snapshots.pop(booking_id, None)
        return data

    def _log_publish_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.logger.error(f"[REALTIME] Status publish failed: {exc}")
