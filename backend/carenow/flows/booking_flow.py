# backend/carenow/flows/booking_flow.py
"""
Booking flow state machine.

Drives the client booking wizard: load the catalog, pick a service, a date
and a slot, load and pick a partner, set the address, then submit. The flow
keeps the transient selection, emits a state for each step and hands the
completed request to the BookingService.

Events are processed strictly in dispatch order. Service calls run on the
shared StoreExecutor when one is given (asyncio.to_thread otherwise);
service exceptions never escape dispatch and surface as BookingError /
BookingNotFound states instead.
"""

import asyncio
from dataclasses import dataclass, fields, replace
from datetime import date
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, Union

from ..core.constants import MAX_INSTRUCTIONS_LENGTH
from ..core.exceptions import (
    DomainException,
    IncompleteBookingException,
    NotFoundException,
    ValidationException,
)
from ..core.executors import StoreExecutor, run_blocking
from ..models.booking import parse_slot_start
from ..schemas.booking import BookingRequest
from ..schemas.partner import PartnerRead
from ..schemas.service import ServiceRead
from ..services.availability_service import AvailabilityService
from ..services.booking_service import BookingService
from ..services.service_catalog_service import ServiceCatalogService
from . import events as ev
from .states import (
    BookingCancelled,
    BookingCreated,
    BookingCreating,
    BookingError,
    BookingInitial,
    BookingLoading,
    BookingNotFound,
    BookingState,
    DateTimeSelected,
    PartnerSelected,
    PartnersLoaded,
    PartnersLoading,
    ReadyForConfirmation,
    ServiceSelected,
    ServicesLoaded,
    UserBookingsLoaded,
)

logger = logging.getLogger(__name__)

Listener = Callable[[BookingState], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class BookingSelection:
    """Transient selections of the wizard."""

    service: Optional[ServiceRead] = None
    date: Optional[date] = None
    time_slot: Optional[str] = None
    hours: Optional[float] = None
    partner: Optional[PartnerRead] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    special_instructions: Optional[str] = None

    def missing_fields(self) -> List[str]:
        return [
            f.name
            for f in fields(self)
            if f.name != "special_instructions" and getattr(self, f.name) is None
        ]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def total_price(self) -> float:
        if self.service is None or self.hours is None:
            return 0.0
        return self.service.calculate_price(self.hours)


class BookingFlow:
    """Client-side booking wizard."""

    def __init__(
        self,
        catalog_service: ServiceCatalogService,
        availability_service: AvailabilityService,
        booking_service: BookingService,
        store: Optional[StoreExecutor] = None,
    ):
        self.catalog_service = catalog_service
        self.availability_service = availability_service
        self.booking_service = booking_service
        self.store = store

        self._state: BookingState = BookingInitial()
        self._selection = BookingSelection()
        self._services: Tuple[ServiceRead, ...] = ()
        self._partners: Tuple[PartnerRead, ...] = ()
        self._listeners: List[Listener] = []
        self._lock = asyncio.Lock()

        self._handlers: Dict[Type[ev.BookingEvent], Callable[[Any], Awaitable[None]]] = {
            ev.LoadServices: self._on_load_services,
            ev.SelectService: self._on_select_service,
            ev.SelectDate: self._on_select_date,
            ev.SelectTimeSlot: self._on_select_time_slot,
            ev.LoadAvailablePartners: self._on_load_available_partners,
            ev.SelectPartner: self._on_select_partner,
            ev.SetClientAddress: self._on_set_client_address,
            ev.SetSpecialInstructions: self._on_set_special_instructions,
            ev.SubmitBooking: self._on_submit_booking,
            ev.CancelBooking: self._on_cancel_booking,
            ev.LoadUserBookings: self._on_load_user_bookings,
            ev.ResetBookingFlow: self._on_reset,
            ev.ClearBookingError: self._on_clear_error,
        }

    @property
    def state(self) -> BookingState:
        return self._state

    @property
    def selection(self) -> BookingSelection:
        return self._selection

    @property
    def total_price(self) -> float:
        return self._selection.total_price

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Register a state listener; returns a callable that removes it."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def dispatch(self, event: ev.BookingEvent) -> BookingState:
        """Process one event and return the state it left the flow in."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported booking event: {type(event).__name__}")

        async with self._lock:
            try:
                await handler(event)
            except DomainException as e:
                logger.info(f"Booking flow {type(event).__name__} failed: {e.code} {e.message}")
                state_cls = BookingNotFound if isinstance(e, NotFoundException) else BookingError
                await self._emit(state_cls(e.message, e.code))
            except Exception as e:
                logger.exception(f"Unexpected error handling {type(event).__name__}")
                await self._emit(BookingError(str(e) or type(e).__name__, "UNEXPECTED_ERROR"))
            return self._state

    async def _emit(self, state: BookingState) -> None:
        self._state = state
        for listener in list(self._listeners):
            result = listener(state)
            if inspect.isawaitable(result):
                await result

    def _step_state(self) -> Optional[BookingState]:
        """ReadyForConfirmation when complete, otherwise None."""
        s = self._selection
        if not s.is_complete:
            return None
        return ReadyForConfirmation(
            service=s.service,
            date=s.date,
            time_slot=s.time_slot,
            hours=s.hours,
            partner=s.partner,
            address=s.address,
            latitude=s.latitude,
            longitude=s.longitude,
            special_instructions=s.special_instructions,
            total_price=s.total_price,
        )

    def _date_time_state(self) -> DateTimeSelected:
        s = self._selection
        return DateTimeSelected(service=s.service, date=s.date, time_slot=s.time_slot, hours=s.hours)

    # Handlers

    async def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        return await run_blocking(self.store, func, *args)

    async def _on_load_services(self, event: ev.LoadServices) -> None:
        await self._emit(BookingLoading())
        services = await self._call(self.catalog_service.get_active_services)
        self._services = tuple(services)
        await self._emit(ServicesLoaded(self._services))

    async def _on_select_service(self, event: ev.SelectService) -> None:
        service = next((s for s in self._services if s.id == event.service_id), None)
        if service is None:
            service = await self._call(self.catalog_service.get_service, event.service_id)
        previous = self._selection.service
        if previous is not None and previous.id != service.id:
            # partners were loaded for the previous service
            self._selection = replace(self._selection, partner=None)
            self._partners = ()
        self._selection = replace(self._selection, service=service)
        await self._emit(self._step_state() or ServiceSelected(service, self._services))

    async def _on_select_date(self, event: ev.SelectDate) -> None:
        self._selection = replace(self._selection, date=event.date)
        if self._selection.service is None:
            return
        await self._emit(self._step_state() or self._date_time_state())

    async def _on_select_time_slot(self, event: ev.SelectTimeSlot) -> None:
        if event.hours is None or event.hours <= 0:
            raise ValidationException("Hours must be greater than zero", code="INVALID_HOURS")
        try:
            parse_slot_start(event.time_slot)
        except ValueError as e:
            raise ValidationException(str(e), code="INVALID_TIME_SLOT") from e
        self._selection = replace(self._selection, time_slot=event.time_slot, hours=event.hours)
        if self._selection.service is None or self._selection.date is None:
            return
        await self._emit(self._step_state() or self._date_time_state())

    async def _on_load_available_partners(self, event: ev.LoadAvailablePartners) -> None:
        s = self._selection
        service_id = event.service_id or (s.service.id if s.service else None)
        on_date = event.date or s.date
        time_slot = event.time_slot or s.time_slot
        missing = [
            name
            for name, value in (
                ("service_id", service_id),
                ("scheduled_date", on_date),
                ("time_slot", time_slot),
                ("hours", s.hours),
            )
            if value is None
        ]
        if missing or s.service is None:
            raise IncompleteBookingException(missing or ["service_id"])
        if service_id != s.service.id:
            raise ValidationException(
                f"Partners can only be loaded for the selected service {s.service.id}",
                code="SERVICE_MISMATCH",
                details={"selected_service_id": s.service.id, "service_id": service_id},
            )

        await self._emit(PartnersLoading(s.service, on_date, time_slot, s.hours))
        partners = await self._call(
            self.availability_service.get_available_partners,
            service_id,
            on_date,
            time_slot,
            event.client_latitude if event.client_latitude is not None else s.latitude,
            event.client_longitude if event.client_longitude is not None else s.longitude,
        )
        self._partners = tuple(partners)
        await self._emit(PartnersLoaded(s.service, on_date, time_slot, s.hours, self._partners))

    async def _on_select_partner(self, event: ev.SelectPartner) -> None:
        partner = next((p for p in self._partners if p.id == event.partner_id), None)
        if partner is None:
            raise NotFoundException(
                f"Partner {event.partner_id} not found", details={"partner_id": event.partner_id}
            )
        self._selection = replace(self._selection, partner=partner)
        s = self._selection
        ready = self._step_state()
        if ready is not None:
            await self._emit(ready)
        elif s.service and s.date and s.time_slot and s.hours:
            await self._emit(
                PartnerSelected(s.service, s.date, s.time_slot, s.hours, partner, self._partners)
            )

    async def _on_set_client_address(self, event: ev.SetClientAddress) -> None:
        if event.latitude is not None and not -90 <= event.latitude <= 90:
            raise ValidationException(
                f"Latitude {event.latitude} is out of range", code="INVALID_ADDRESS"
            )
        if event.longitude is not None and not -180 <= event.longitude <= 180:
            raise ValidationException(
                f"Longitude {event.longitude} is out of range", code="INVALID_ADDRESS"
            )
        self._selection = replace(
            self._selection,
            address=event.address.strip() or None,
            latitude=event.latitude,
            longitude=event.longitude,
        )
        ready = self._step_state()
        if ready is not None:
            await self._emit(ready)

    async def _on_set_special_instructions(self, event: ev.SetSpecialInstructions) -> None:
        instructions = event.instructions.strip() if event.instructions else None
        if instructions and len(instructions) > MAX_INSTRUCTIONS_LENGTH:
            raise ValidationException(
                f"Special instructions must be at most {MAX_INSTRUCTIONS_LENGTH} characters",
                code="INVALID_INSTRUCTIONS",
            )
        self._selection = replace(self._selection, special_instructions=instructions or None)
        ready = self._step_state()
        if ready is not None:
            await self._emit(ready)

    def _build_request(self, user_id: str) -> BookingRequest:
        s = self._selection
        return BookingRequest(
            user_id=user_id,
            service_id=s.service.id,
            service_name=s.service.name,
            scheduled_date=s.date,
            time_slot=s.time_slot,
            hours=s.hours,
            total_price=s.total_price,
            client_address=s.address,
            client_latitude=s.latitude,
            client_longitude=s.longitude,
            special_instructions=s.special_instructions,
            preferred_partner_id=s.partner.id,
        )

    async def _on_submit_booking(self, event: ev.SubmitBooking) -> None:
        missing = self._selection.missing_fields()
        if missing:
            raise IncompleteBookingException(missing)

        await self._emit(BookingCreating())
        booking = await self._call(self.booking_service.submit, self._build_request(event.user_id))
        self._selection = BookingSelection()
        self._partners = ()
        await self._emit(BookingCreated(booking))

    async def _on_cancel_booking(self, event: ev.CancelBooking) -> None:
        await self._emit(BookingLoading())
        booking = await self._call(self.booking_service.cancel, event.booking_id, event.reason)
        await self._emit(BookingCancelled(booking))

    async def _on_load_user_bookings(self, event: ev.LoadUserBookings) -> None:
        await self._emit(BookingLoading())
        bookings = await self._call(
            self.booking_service.get_user_bookings, event.user_id, event.status
        )
        await self._emit(UserBookingsLoaded(tuple(bookings)))

    async def _on_reset(self, event: ev.ResetBookingFlow) -> None:
        self._selection = BookingSelection()
        self._partners = ()
        await self._emit(BookingInitial())

    async def _on_clear_error(self, event: ev.ClearBookingError) -> None:
        await self._emit(BookingInitial())
