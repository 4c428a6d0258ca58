# backend/carenow/services/review_service.py
"""
Review Service for CareNow

Clients review completed bookings, one review per booking. Creating,
editing or deleting a review recomputes the partner's rating and review
count; the booking's is_reviewed flag follows the review's existence.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ReviewEditWindowException,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.booking import BookingStatus
from ..repositories.factory import RepositoryFactory
from ..schemas.review import ReviewRead, ReviewRequest
from .base import BaseService

logger = logging.getLogger(__name__)


class ReviewService(BaseService):
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        super().__init__(db)
        self.settings = settings or default_settings
        self.repository = RepositoryFactory.create_review_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.partner_repository = RepositoryFactory.create_partner_repository(db)

    def can_review(self, booking_id: str, user_id: str) -> bool:
        """True when the user's booking is completed and not yet reviewed."""
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None or booking.user_id != user_id:
            return False
        if booking.status != BookingStatus.COMPLETED.value:
            return False
        return not self.repository.exists_for_booking(booking_id)

    def _check_reviewable(self, booking_id: str, user_id: str):
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", details={"booking_id": booking_id})
        if booking.user_id != user_id:
            raise ValidationException("Only the client of a booking can review it", code="NOT_BOOKING_OWNER")
        if booking.status != BookingStatus.COMPLETED.value:
            raise BusinessRuleException("Only completed bookings can be reviewed", code="BOOKING_NOT_COMPLETED")
        if self.repository.exists_for_booking(booking_id):
            raise ConflictException("This booking has already been reviewed", code="ALREADY_REVIEWED")
        if not booking.partner_id:
            raise BusinessRuleException("Booking has no partner to review", code="NO_PARTNER")
        return booking

    def _refresh_partner_rating(self, partner_id: str) -> None:
        count, average = self.repository.get_partner_aggregate(partner_id)
        self.partner_repository.update_rating(partner_id, round(average, 2), count)

    @BaseService.measure_operation("create_review")
    def create_review(self, user_id: str, request: ReviewRequest) -> ReviewRead:
        booking = self._check_reviewable(request.booking_id, user_id)
        with self.transaction():
            review = self.repository.create(
                booking_id=booking.id,
                user_id=user_id,
                partner_id=booking.partner_id,
                service_id=booking.service_id,
                rating=request.rating,
                comment=request.comment,
                tags=request.tags,
                is_recommended=request.is_recommended,
            )
            booking.is_reviewed = True
            self._refresh_partner_rating(booking.partner_id)

        self.log_operation("create_review", review_id=review.id, partner_id=review.partner_id)
        return ReviewRead.model_validate(review)

    def _owned_review(self, review_id: str, user_id: str):
        review = self.repository.get_by_id(review_id)
        if review is None:
            raise NotFoundException(f"Review {review_id} not found", details={"review_id": review_id})
        if review.user_id != user_id:
            raise ValidationException("Only the author can change a review", code="NOT_REVIEW_AUTHOR")
        return review

    @BaseService.measure_operation("update_review")
    def update_review(
        self,
        review_id: str,
        user_id: str,
        request: ReviewRequest,
        now: Optional[datetime] = None,
    ) -> ReviewRead:
        """Edit a review within review_edit_window_hours of its creation."""
        review = self._owned_review(review_id, user_id)
        now = ensure_utc(now) or utc_now()
        window = self.settings.review_edit_window_hours
        if now - ensure_utc(review.created_at) > timedelta(hours=window):
            raise ReviewEditWindowException(window)

        with self.transaction():
            review.rating = request.rating
            review.comment = request.comment
            review.tags = request.tags
            review.is_recommended = request.is_recommended
            review.updated_at = now
            self.repository.flush()
            self._refresh_partner_rating(review.partner_id)

        return ReviewRead.model_validate(review)

    @BaseService.measure_operation("delete_review")
    def delete_review(self, review_id: str, user_id: str) -> bool:
        review = self._owned_review(review_id, user_id)
        partner_id, booking_id = review.partner_id, review.booking_id
        with self.transaction():
            self.repository.delete(review_id)
            booking = self.booking_repository.get_by_id(booking_id)
            if booking is not None:
                booking.is_reviewed = False
            self._refresh_partner_rating(partner_id)
        self.log_operation("delete_review", review_id=review_id, partner_id=partner_id)
        return True

    def get_partner_reviews(self, partner_id: str, limit: Optional[int] = None) -> List[ReviewRead]:
        rows = self.repository.get_partner_reviews(partner_id, limit or self.settings.default_page_size)
        return [ReviewRead.model_validate(r) for r in rows]

    def get_service_reviews(self, service_id: str, limit: Optional[int] = None) -> List[ReviewRead]:
        rows = self.repository.get_service_reviews(service_id, limit or self.settings.default_page_size)
        return [ReviewRead.model_validate(r) for r in rows]

    def get_user_reviews(self, user_id: str, limit: Optional[int] = None) -> List[ReviewRead]:
        rows = self.repository.get_user_reviews(user_id, limit or self.settings.default_page_size)
        return [ReviewRead.model_validate(r) for r in rows]

    def get_booking_review(self, booking_id: str) -> Optional[ReviewRead]:
        review = self.repository.get_by_booking_id(booking_id)
        return ReviewRead.model_validate(review) if review else None
