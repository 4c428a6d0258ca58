# backend/carenow/models/booking.py
"""
Booking model for CareNow.

A booking is the persisted record of a submitted booking request. It keeps
a snapshot of the service name, schedule and price so the record stays
meaningful when the catalog changes. Bookings are never deleted; they only
move through the status lifecycle:

    pending -> confirmed -> in-progress -> completed
    pending | confirmed -> cancelled
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
import logging
import re
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    String,
    Text,
)
from sqlalchemy.sql import func

from ..core.timezone_utils import ensure_utc
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)

_SLOT_START_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "BookingStatus") -> bool:
        return target in ALLOWED_TRANSITIONS[self]


class PaymentStatus(str, Enum):
    """Payment bookkeeping for a booking."""

    UNPAID = "unpaid"
    PAID = "paid"


ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
CANCELLABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def parse_slot_start(time_slot: str) -> tuple[int, int]:
    """
    Return (hour, minute) of the first HH:MM in a time slot label.

    "10:00–12:00" -> (10, 0). Raises ValueError for labels without a start time.
    """
    match = _SLOT_START_RE.match(time_slot or "")
    if not match:
        raise ValueError(f"Time slot has no start time: {time_slot!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Time slot start out of range: {time_slot!r}")
    return hour, minute


def compute_scheduled_start(scheduled_date: date, time_slot: str) -> datetime:
    """Start of a booking in UTC, combining its date with the slot start time."""
    hour, minute = parse_slot_start(time_slot)
    return datetime(
        scheduled_date.year, scheduled_date.month, scheduled_date.day, hour, minute,
        tzinfo=timezone.utc,
    )


class Booking(Base):
    """Persisted booking between a client and a care partner."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    user_id = Column(String(128), nullable=False, index=True)
    # Empty until a partner is chosen or assigned
    partner_id = Column(String(128), nullable=False, default="", index=True)
    service_id = Column(String(64), nullable=False, index=True)

    # Service and schedule snapshot
    service_name = Column(String(255), nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(32), nullable=False)
    hours = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    payment_method = Column(String(50), nullable=True)
    payment_transaction_id = Column(String(255), nullable=True)

    client_address = Column(Text, nullable=False)
    client_latitude = Column(Float, nullable=False)
    client_longitude = Column(Float, nullable=False)
    special_instructions = Column(Text, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    is_reviewed = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in-progress', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("payment_status IN ('unpaid', 'paid')", name="ck_bookings_payment_status"),
        CheckConstraint("hours > 0", name="check_hours_positive"),
        CheckConstraint("total_price >= 0", name="check_price_non_negative"),
        Index("ix_bookings_user_created", "user_id", "created_at"),
        Index("ix_bookings_partner_created", "partner_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: user={self.user_id}, partner={self.partner_id or '-'}, "
            f"date={self.scheduled_date}, slot={self.time_slot}, status={self.status}>"
        )

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def is_cancellable(self) -> bool:
        """Status-only check; the notice window is checked by can_be_cancelled."""
        return self.status_enum in CANCELLABLE_STATUSES

    @property
    def scheduled_start(self) -> datetime:
        return compute_scheduled_start(self.scheduled_date, self.time_slot)

    def hours_until_start(self, now: datetime) -> float:
        return (self.scheduled_start - ensure_utc(now)).total_seconds() / 3600

    def can_be_cancelled(self, now: Optional[datetime] = None, notice_hours: int = 2) -> bool:
        """
        True when the booking may still be cancelled at ``now``.

        Requires a cancellable status and a start strictly more than
        ``notice_hours`` away; exactly ``notice_hours`` is too late.
        """
        if not self.is_cancellable:
            return False
        now = ensure_utc(now) or datetime.now(timezone.utc)
        return self.scheduled_start - now > timedelta(hours=notice_hours)

    def apply_status(self, target: BookingStatus, now: Optional[datetime] = None) -> None:
        """Set status and the matching timestamp. Callers validate the transition."""
        now = now or datetime.now(timezone.utc)
        self.status = target.value
        self.updated_at = now
        if target is BookingStatus.COMPLETED:
            self.completed_at = now
        elif target is BookingStatus.CANCELLED:
            self.cancelled_at = now
        logger.info(f"Booking {self.id} moved to {target.value}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "partner_id": self.partner_id,
            "service_id": self.service_id,
            "service_name": self.service_name,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "time_slot": self.time_slot,
            "hours": self.hours,
            "total_price": self.total_price,
            "status": self.status,
            "payment_status": self.payment_status,
            "client_address": self.client_address,
            "cancellation_reason": self.cancellation_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
