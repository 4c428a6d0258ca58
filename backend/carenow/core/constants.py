"""Application-wide constants for the CareNow booking core."""

from __future__ import annotations

# Day of week mapping (date.weekday() index -> working_hours key)
DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

# Query limits
DEFAULT_QUERY_LIMIT = 20

# Review constraints
MIN_RATING = 0.0
MAX_RATING = 5.0
RATING_STEP = 0.5
MAX_COMMENT_LENGTH = 1000

# Earth radius used by the partner distance filter
EARTH_RADIUS_KM = 6371.0

# Realtime change-feed channel prefix
BOOKING_CHANNEL_PREFIX = "booking:"

# Booking request bounds
MAX_INSTRUCTIONS_LENGTH = 1000
