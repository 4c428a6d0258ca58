# backend/carenow/schemas/booking.py
"""
Booking schemas.

BookingRequest is the transient aggregate of the booking wizard's
selections; BookingRead is the immutable snapshot of a persisted booking.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_INSTRUCTIONS_LENGTH
from ..core.timezone_utils import ensure_utc
from ..models.booking import (
    CANCELLABLE_STATUSES,
    BookingStatus,
    PaymentStatus,
    compute_scheduled_start,
    parse_slot_start,
)
from .base import SnapshotModel, StrictModel

# Fields that must be set before a request can be submitted
REQUIRED_REQUEST_FIELDS = (
    "service_id",
    "scheduled_date",
    "time_slot",
    "hours",
    "preferred_partner_id",
    "client_address",
    "client_latitude",
    "client_longitude",
)


class BookingRequest(StrictModel):
    """Selections gathered by the booking wizard, not yet persisted."""

    user_id: str = Field(..., min_length=1)
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    scheduled_date: Optional[date] = None
    time_slot: Optional[str] = None
    hours: Optional[float] = Field(None, gt=0)
    total_price: Optional[float] = Field(None, ge=0)
    client_address: Optional[str] = None
    client_latitude: Optional[float] = Field(None, ge=-90, le=90)
    client_longitude: Optional[float] = Field(None, ge=-180, le=180)
    special_instructions: Optional[str] = Field(None, max_length=MAX_INSTRUCTIONS_LENGTH)
    preferred_partner_id: Optional[str] = None

    @field_validator("time_slot")
    @classmethod
    def _slot_has_start(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        parse_slot_start(v)
        return v

    @field_validator("client_address", "special_instructions")
    @classmethod
    def _strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v2 = v.strip()
        return v2 or None

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_REQUEST_FIELDS if getattr(self, name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


class BookingRead(SnapshotModel):
    id: str
    user_id: str
    partner_id: str = ""
    service_id: str
    service_name: str
    scheduled_date: date
    time_slot: str
    hours: float
    total_price: float
    status: BookingStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    payment_transaction_id: Optional[str] = None
    client_address: str
    client_latitude: float
    client_longitude: float
    special_instructions: Optional[str] = None
    cancellation_reason: Optional[str] = None
    is_reviewed: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @property
    def scheduled_start(self) -> datetime:
        return compute_scheduled_start(self.scheduled_date, self.time_slot)

    def can_be_cancelled(self, now: Optional[datetime] = None, notice_hours: int = 2) -> bool:
        """Display helper; BookingService.cancel enforces the same rule."""
        if self.status not in CANCELLABLE_STATUSES:
            return False
        now = ensure_utc(now) or datetime.now(timezone.utc)
        return self.scheduled_start - now > timedelta(hours=notice_hours)

    @property
    def formatted_date_time(self) -> str:
        d = self.scheduled_date
        return f"{d.day}/{d.month}/{d.year} - {self.time_slot}"
