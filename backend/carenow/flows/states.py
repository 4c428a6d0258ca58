# backend/carenow/flows/states.py
"""
States emitted by the client flows.

All states are frozen dataclasses; collections are tuples so a state can be
compared and hashed like any other value.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from ..schemas.auth import AuthUser
from ..schemas.booking import BookingRead
from ..schemas.partner import PartnerRead
from ..schemas.realtime import BookingRealtimeData
from ..schemas.service import ServiceRead


class BookingState:
    """Base class for booking flow states."""


@dataclass(frozen=True)
class BookingInitial(BookingState):
    pass


@dataclass(frozen=True)
class BookingLoading(BookingState):
    pass


@dataclass(frozen=True)
class BookingError(BookingState):
    message: str
    code: Optional[str] = None


@dataclass(frozen=True)
class BookingNotFound(BookingError):
    pass


@dataclass(frozen=True)
class ServicesLoaded(BookingState):
    services: Tuple[ServiceRead, ...]


@dataclass(frozen=True)
class ServiceSelected(BookingState):
    service: ServiceRead
    services: Tuple[ServiceRead, ...]


@dataclass(frozen=True)
class DateTimeSelected(BookingState):
    service: ServiceRead
    date: date
    time_slot: Optional[str] = None
    hours: Optional[float] = None


@dataclass(frozen=True)
class PartnersLoading(BookingState):
    service: ServiceRead
    date: date
    time_slot: str
    hours: float


@dataclass(frozen=True)
class PartnersLoaded(BookingState):
    service: ServiceRead
    date: date
    time_slot: str
    hours: float
    partners: Tuple[PartnerRead, ...]


@dataclass(frozen=True)
class PartnerSelected(BookingState):
    service: ServiceRead
    date: date
    time_slot: str
    hours: float
    partner: PartnerRead
    partners: Tuple[PartnerRead, ...]


@dataclass(frozen=True)
class ReadyForConfirmation(BookingState):
    service: ServiceRead
    date: date
    time_slot: str
    hours: float
    partner: PartnerRead
    address: str
    latitude: float
    longitude: float
    special_instructions: Optional[str]
    total_price: float


@dataclass(frozen=True)
class BookingCreating(BookingState):
    pass


@dataclass(frozen=True)
class BookingCreated(BookingState):
    booking: BookingRead


@dataclass(frozen=True)
class BookingCancelled(BookingState):
    booking: BookingRead


@dataclass(frozen=True)
class UserBookingsLoaded(BookingState):
    bookings: Tuple[BookingRead, ...]


# Realtime tracking


class RealtimeState:
    """Base class for realtime tracker states."""


@dataclass(frozen=True)
class RealtimeInitial(RealtimeState):
    pass


@dataclass(frozen=True)
class RealtimeTracking(RealtimeState):
    booking_id: str


@dataclass(frozen=True)
class RealtimeUpdated(RealtimeState):
    data: BookingRealtimeData


@dataclass(frozen=True)
class RealtimeError(RealtimeState):
    message: str


# Auth session


class AuthState:
    """Base class for auth flow states."""


@dataclass(frozen=True)
class AuthInitial(AuthState):
    pass


@dataclass(frozen=True)
class AuthLoading(AuthState):
    pass


@dataclass(frozen=True)
class Authenticated(AuthState):
    user: AuthUser


@dataclass(frozen=True)
class Unauthenticated(AuthState):
    pass


@dataclass(frozen=True)
class PhoneCodeSent(AuthState):
    verification_id: str
    phone_number: str


@dataclass(frozen=True)
class PasswordResetSent(AuthState):
    email: str


@dataclass(frozen=True)
class AuthError(AuthState):
    message: str
    code: Optional[str] = None
