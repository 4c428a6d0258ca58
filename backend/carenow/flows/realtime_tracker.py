# backend/carenow/flows/realtime_tracker.py
"""
Client-side tracker for one booking's realtime snapshots.

start() seeds tracking and spawns a listener task that turns every
published snapshot into a RealtimeUpdated state. A failing subscription
ends in RealtimeError; re-subscribing is up to the caller.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from ..services.realtime_booking_service import RealtimeBookingService
from .states import RealtimeError, RealtimeInitial, RealtimeState, RealtimeTracking, RealtimeUpdated

logger = logging.getLogger(__name__)

Listener = Callable[[RealtimeState], Union[None, Awaitable[None]]]


class RealtimeBookingTracker:
    def __init__(self, realtime_service: RealtimeBookingService):
        self.realtime_service = realtime_service
        self._state: RealtimeState = RealtimeInitial()
        self._listeners: List[Listener] = []
        self._task: Optional[asyncio.Task] = None
        self._booking_id: Optional[str] = None
        self._subscribed = asyncio.Event()

    @property
    def state(self) -> RealtimeState:
        return self._state

    @property
    def booking_id(self) -> Optional[str]:
        return self._booking_id

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def _emit(self, state: RealtimeState) -> None:
        self._state = state
        for listener in list(self._listeners):
            result = listener(state)
            if inspect.isawaitable(result):
                await result

    async def start(self, booking_id: str, seed_status: Optional[str] = None) -> RealtimeState:
        """
        Begin tracking ``booking_id``.

        Returns once the subscription is live, so snapshots published after
        start() returns are delivered. With ``seed_status`` an initial
        snapshot is published as well.
        """
        await self.stop()
        self._booking_id = booking_id
        self._subscribed = asyncio.Event()
        self._task = asyncio.create_task(self._listen(booking_id))

        subscribed = asyncio.create_task(self._subscribed.wait())
        done, _ = await asyncio.wait({subscribed, self._task}, return_when=asyncio.FIRST_COMPLETED)
        if subscribed not in done:
            subscribed.cancel()
            return self._state

        await self._emit(RealtimeTracking(booking_id))
        if seed_status is not None:
            await self.realtime_service.initialize_tracking(booking_id, seed_status)
        return self._state

    async def _listen(self, booking_id: str) -> None:
        try:
            async with self.realtime_service.subscribe(booking_id) as updates:
                self._subscribed.set()
                async for data in updates:
                    await self._emit(RealtimeUpdated(data))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[REALTIME] Tracking failed for booking {booking_id}: {str(e)}")
            await self._emit(RealtimeError(str(e) or type(e).__name__))

    async def stop(self) -> None:
        """Cancel the listener task and return to RealtimeInitial."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        if self._booking_id is not None:
            self.realtime_service.stop_tracking(self._booking_id)
        self._booking_id = None
        await self._emit(RealtimeInitial())
