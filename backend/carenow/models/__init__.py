"""
Database models for CareNow.

Each model maps one collection of the document store:
- Service: the offerable service catalog
- Partner: caregivers, their services, location and working hours
- User: client/partner/admin profiles keyed by auth uid
- Booking: persisted bookings and their status lifecycle
- Review: per-booking client reviews
- Notification / NotificationPreferences: in-app notifications and delivery toggles
"""

from .booking import (
    ALLOWED_TRANSITIONS,
    CANCELLABLE_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    PaymentStatus,
)
from .notification import Notification, NotificationPreferences, NotificationType
from .partner import Partner
from .review import Review
from .service import Service
from .user import User, UserRole

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CANCELLABLE_STATUSES",
    "TERMINAL_STATUSES",
    "Booking",
    "BookingStatus",
    "Notification",
    "NotificationPreferences",
    "NotificationType",
    "Partner",
    "PaymentStatus",
    "Review",
    "Service",
    "User",
    "UserRole",
]
