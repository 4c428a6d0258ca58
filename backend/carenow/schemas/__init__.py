from .auth import AuthUser
from .booking import REQUIRED_REQUEST_FIELDS, BookingRead, BookingRequest
from .notification import NotificationPreferencesRead, NotificationPreferencesUpdate, NotificationRead
from .partner import PartnerRead
from .realtime import BookingRealtimeData, LocationData, RealtimeMessage
from .review import ReviewRead, ReviewRequest
from .service import ServiceRead

__all__ = [
    "REQUIRED_REQUEST_FIELDS",
    "AuthUser",
    "BookingRead",
    "BookingRealtimeData",
    "BookingRequest",
    "LocationData",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "PartnerRead",
    "RealtimeMessage",
    "ReviewRead",
    "ReviewRequest",
    "ServiceRead",
]
