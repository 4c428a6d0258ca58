# backend/carenow/repositories/review_repository.py
"""
Repository for reviews.

Follows repository pattern: no business logic, DB-only operations.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..models.review import Review
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):
    """Data access for `Review`."""

    def __init__(self, db: Session):
        super().__init__(db, Review)
        self.logger = logging.getLogger(__name__)

    def exists_for_booking(self, booking_id: str) -> bool:
        return self.exists(booking_id=booking_id)

    def get_by_booking_id(self, booking_id: str) -> Optional[Review]:
        return self.find_one_by(booking_id=booking_id)

    def _newest_first(self, limit: int, **criteria: str) -> List[Review]:
        query = (
            self._build_query()
            .filter_by(**criteria)
            .order_by(Review.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def get_partner_reviews(self, partner_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> List[Review]:
        return self._newest_first(limit, partner_id=partner_id)

    def get_service_reviews(self, service_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> List[Review]:
        return self._newest_first(limit, service_id=service_id)

    def get_user_reviews(self, user_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> List[Review]:
        return self._newest_first(limit, user_id=user_id)

    def get_partner_aggregate(self, partner_id: str) -> Tuple[int, float]:
        """(review count, average rating) for a partner; (0, 0.0) without reviews."""
        query = self.db.query(func.count(Review.id), func.avg(Review.rating)).filter(
            Review.partner_id == partner_id
        )
        count, average = query.one()
        return int(count or 0), float(average or 0.0)
