from .auth_flow import AuthFlow
from .booking_flow import BookingFlow, BookingSelection
from .realtime_tracker import RealtimeBookingTracker

__all__ = ["AuthFlow", "BookingFlow", "BookingSelection", "RealtimeBookingTracker"]
