# backend/carenow/repositories/booking_repository.py
"""
Booking Repository for CareNow

Implements all data access operations for bookings:
- Booking creation
- Client and partner booking lists (optionally filtered by status)
- Date-range queries for calendars
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_user_bookings(
        self,
        user_id: str,
        status: Optional[BookingStatus] = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[Booking]:
        """Bookings made by a client, newest first."""
        query = self._build_query().filter(Booking.user_id == user_id)
        if status is not None:
            query = query.filter(Booking.status == BookingStatus(status).value)
        query = query.order_by(Booking.created_at.desc()).limit(limit)
        return self._execute_query(query)

    def get_partner_bookings(
        self,
        partner_id: str,
        status: Optional[BookingStatus] = None,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[Booking]:
        """Bookings assigned to a partner, newest first."""
        query = self._build_query().filter(Booking.partner_id == partner_id)
        if status is not None:
            query = query.filter(Booking.status == BookingStatus(status).value)
        query = query.order_by(Booking.created_at.desc()).limit(limit)
        return self._execute_query(query)

    def get_bookings_by_date_range(
        self,
        owner_id: str,
        start_date: date,
        end_date: date,
        is_partner: bool = False,
    ) -> List[Booking]:
        """Bookings of a client (or partner) scheduled within [start_date, end_date]."""
        owner_column = Booking.partner_id if is_partner else Booking.user_id
        query = (
            self._build_query()
            .filter(
                owner_column == owner_id,
                Booking.scheduled_date >= start_date,
                Booking.scheduled_date <= end_date,
            )
            .order_by(Booking.scheduled_date.asc(), Booking.time_slot.asc())
        )
        return self._execute_query(query)
