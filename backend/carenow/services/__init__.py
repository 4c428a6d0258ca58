from .availability_service import AvailabilityService, haversine_km
from .base import BaseService
from .booking_service import BookingService
from .notification_service import NotificationService
from .realtime_booking_service import RealtimeBookingService, booking_channel
from .review_service import ReviewService
from .service_catalog_service import ServiceCatalogService
from .user_service import UserService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "NotificationService",
    "RealtimeBookingService",
    "ReviewService",
    "ServiceCatalogService",
    "UserService",
    "booking_channel",
    "haversine_km",
]
