# backend/carenow/flows/events.py
"""Events accepted by the booking flow."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..models.booking import BookingStatus


class BookingEvent:
    """Base class for booking flow events."""


@dataclass(frozen=True)
class LoadServices(BookingEvent):
    pass


@dataclass(frozen=True)
class SelectService(BookingEvent):
    service_id: str


@dataclass(frozen=True)
class SelectDate(BookingEvent):
    date: date


@dataclass(frozen=True)
class SelectTimeSlot(BookingEvent):
    time_slot: str
    hours: float


@dataclass(frozen=True)
class LoadAvailablePartners(BookingEvent):
    """Query partners; omitted fields fall back to the current selection."""

    service_id: Optional[str] = None
    date: Optional[date] = None
    time_slot: Optional[str] = None
    client_latitude: Optional[float] = None
    client_longitude: Optional[float] = None


@dataclass(frozen=True)
class SelectPartner(BookingEvent):
    partner_id: str


@dataclass(frozen=True)
class SetClientAddress(BookingEvent):
    address: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class SetSpecialInstructions(BookingEvent):
    instructions: Optional[str]


@dataclass(frozen=True)
class SubmitBooking(BookingEvent):
    user_id: str


@dataclass(frozen=True)
class CancelBooking(BookingEvent):
    booking_id: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class LoadUserBookings(BookingEvent):
    user_id: str
    status: Optional[BookingStatus] = None


@dataclass(frozen=True)
class ResetBookingFlow(BookingEvent):
    pass


@dataclass(frozen=True)
class ClearBookingError(BookingEvent):
    pass
