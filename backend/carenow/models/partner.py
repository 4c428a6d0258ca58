"""
Care partner model.

Partners maintain their own availability, working hours and location
through AvailabilityService; the booking flow only reads them.
"""

from datetime import date, datetime, timezone
from typing import List

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, Integer, String
from sqlalchemy.types import JSON

from ..core.constants import DAYS_OF_WEEK
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Partner(Base):
    """Verified caregiver who can be booked for one or more services."""

    __tablename__ = "partners"

    id = Column(String(128), primary_key=True, default=generate_ulid)
    user_id = Column(String(128), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(32), nullable=True)
    bio = Column(String(1000), nullable=True)
    rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    price_per_hour = Column(Float, nullable=False, default=0.0)
    # Service ids this partner offers
    services = Column(JSON, nullable=False, default=list)
    latitude = Column(Float, nullable=False, default=0.0)
    longitude = Column(Float, nullable=False, default=0.0)
    # {"monday": ["08:00-12:00", ...], ...}
    working_hours = Column(JSON, nullable=False, default=dict)
    is_verified = Column(Boolean, nullable=False, default=False, index=True)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_partners_rating_range"),
        CheckConstraint("total_reviews >= 0", name="ck_partners_reviews_non_negative"),
    )

    def offers(self, service_id: str) -> bool:
        return service_id in (self.services or [])

    def slots_for(self, day: date) -> List[str]:
        return list((self.working_hours or {}).get(DAYS_OF_WEEK[day.weekday()], []))

    def works_on(self, day: date) -> bool:
        return bool(self.slots_for(day))

    def __repr__(self) -> str:
        return f"<Partner {self.id}: {self.name} rating={self.rating:.1f}>"
