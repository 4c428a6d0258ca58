# backend/carenow/services/booking_service.py
"""
Booking Service for CareNow

Persistence gateway for bookings. Handles:
- Submitting complete booking requests (status pending, payment unpaid)
- Lifecycle transitions: confirm, reject, start, complete, cancel
- The cancellation notice window, enforced here and not only for display
- Payment bookkeeping
- Client and partner booking queries

After every committed change the client is notified and the new status is
republished on the realtime bridge when one is wired.
"""

from datetime import date, datetime, timezone
import logging
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import (
    BusinessRuleException,
    CancellationWindowException,
    IncompleteBookingException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import utc_now
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingRead, BookingRequest
from .base import BaseService

if TYPE_CHECKING:
    from .notification_service import NotificationService
    from .realtime_booking_service import RealtimeBookingService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """Service layer for booking persistence and lifecycle."""

    def __init__(
        self,
        db: Session,
        notification_service: Optional["NotificationService"] = None,
        realtime_service: Optional["RealtimeBookingService"] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.settings = settings or default_settings
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.service_repository = RepositoryFactory.create_service_catalog_repository(db)
        self.partner_repository = RepositoryFactory.create_partner_repository(db)
        self.notification_service = notification_service
        self.realtime_service = realtime_service

    def _get_or_raise(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(f"Booking {booking_id} not found", details={"booking_id": booking_id})
        return booking

    @BaseService.measure_operation("submit_booking")
    def submit(self, request: BookingRequest) -> BookingRead:
        """
        Persist a complete booking request.

        Raises:
            IncompleteBookingException: required selections are missing
            NotFoundException: the service or the partner does not exist
            ValidationException: the service is no longer offered, or the
                partner does not offer it
        """
        missing = request.missing_fields()
        if missing:
            raise IncompleteBookingException(missing)

        service = self.service_repository.get_by_id(request.service_id)
        if service is None:
            raise NotFoundException(
                f"Service {request.service_id} not found", details={"service_id": request.service_id}
            )
        if not service.is_active:
            raise ValidationException(
                f"Service {service.name} is not currently offered", code="SERVICE_INACTIVE"
            )
        self._check_partner_offers(request.preferred_partner_id, service.id)

        with self.transaction():
            booking = self.repository.create(
                user_id=request.user_id,
                partner_id=request.preferred_partner_id or "",
                service_id=service.id,
                service_name=request.service_name or service.name,
                scheduled_date=request.scheduled_date,
                time_slot=request.time_slot,
                hours=request.hours,
                total_price=service.calculate_price(request.hours),
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.UNPAID.value,
                client_address=request.client_address,
                client_latitude=request.client_latitude,
                client_longitude=request.client_longitude,
                special_instructions=request.special_instructions,
            )

        self.log_operation(
            "submit_booking",
            booking_id=booking.id,
            user_id=booking.user_id,
            service_id=booking.service_id,
            total_price=booking.total_price,
        )
        self._after_status_change(booking, "Booking created")
        return BookingRead.model_validate(booking)

    def _check_partner_offers(self, partner_id: str, service_id: str) -> None:
        partner = self.partner_repository.get_by_id(partner_id)
        if partner is None:
            raise NotFoundException(f"Partner {partner_id} not found", details={"partner_id": partner_id})
        if not partner.offers(service_id):
            raise ValidationException(
                f"Partner {partner.name} does not offer service {service_id}",
                code="PARTNER_SERVICE_MISMATCH",
                details={"partner_id": partner_id, "service_id": service_id},
            )

    def can_be_cancelled(self, booking: Booking, now: Optional[datetime] = None) -> bool:
        return booking.can_be_cancelled(now, self.settings.cancellation_notice_hours)

    @BaseService.measure_operation("cancel_booking")
    def cancel(
        self, booking_id: str, reason: Optional[str] = None, now: Optional[datetime] = None
    ) -> BookingRead:
        """
        Cancel a pending or confirmed booking.

        The start must be strictly more than ``cancellation_notice_hours``
        away; a booking exactly at the boundary can no longer be cancelled.
        """
        now = now or utc_now()
        booking = self._get_or_raise(booking_id)

        if not booking.is_cancellable:
            raise InvalidStatusTransitionException(
                booking.id, booking.status, BookingStatus.CANCELLED.value
            )
        notice = self.settings.cancellation_notice_hours
        if not booking.can_be_cancelled(now, notice):
            raise CancellationWindowException(notice, booking.hours_until_start(now))

        with self.transaction():
            booking.apply_status(BookingStatus.CANCELLED, now)
            booking.cancellation_reason = reason.strip() if reason and reason.strip() else None
            self.repository.flush()

        self.log_operation("cancel_booking", booking_id=booking.id, reason=booking.cancellation_reason)
        self._after_status_change(booking, "Booking cancelled")
        return BookingRead.model_validate(booking)

    def _transition(
        self,
        booking_id: str,
        target: BookingStatus,
        message: str,
        now: Optional[datetime] = None,
        **updates,
    ) -> BookingRead:
        booking = self._get_or_raise(booking_id)
        if not booking.status_enum.can_transition_to(target):
            raise InvalidStatusTransitionException(booking.id, booking.status, target.value)

        with self.transaction():
            for key, value in updates.items():
                setattr(booking, key, value)
            booking.apply_status(target, now or utc_now())
            self.repository.flush()

        self.log_operation(f"booking_{target.name.lower()}", booking_id=booking.id)
        self._after_status_change(booking, message)
        return BookingRead.model_validate(booking)

    @BaseService.measure_operation("confirm_booking")
    def confirm(self, booking_id: str, partner_id: str) -> BookingRead:
        """Partner accepts a pending booking."""
        if not partner_id:
            raise ValidationException("A partner is required to confirm a booking", code="PARTNER_REQUIRED")
        return self._transition(
            booking_id, BookingStatus.CONFIRMED, "Your partner confirmed the booking", partner_id=partner_id
        )

    @BaseService.measure_operation("reject_booking")
    def reject(self, booking_id: str, partner_id: str, reason: Optional[str] = None) -> BookingRead:
        """
        Partner declines a pending booking.

        The booking ends cancelled with the reason recorded. Unlike a client
        cancellation, the notice window does not apply.
        """
        booking = self._get_or_raise(booking_id)
        if booking.partner_id and booking.partner_id != partner_id:
            raise ValidationException(
                f"Booking {booking_id} is not assigned to partner {partner_id}",
                code="NOT_BOOKING_PARTNER",
            )
        if booking.status != BookingStatus.PENDING.value:
            raise InvalidStatusTransitionException(
                booking.id, booking.status, BookingStatus.CANCELLED.value
            )
        return self._transition(
            booking_id,
            BookingStatus.CANCELLED,
            "Your partner declined the booking",
            cancellation_reason=reason.strip() if reason and reason.strip() else None,
        )

    @BaseService.measure_operation("start_booking")
    def start(self, booking_id: str) -> BookingRead:
        return self._transition(booking_id, BookingStatus.IN_PROGRESS, "Care session started")

    @BaseService.measure_operation("complete_booking")
    def complete(self, booking_id: str, now: Optional[datetime] = None) -> BookingRead:
        return self._transition(booking_id, BookingStatus.COMPLETED, "Care session completed", now=now)

    @BaseService.measure_operation("mark_booking_paid")
    def mark_paid(self, booking_id: str, payment_method: str, transaction_id: str) -> BookingRead:
        """Record that a booking was paid. Bookkeeping only."""
        booking = self._get_or_raise(booking_id)
        if booking.payment_status == PaymentStatus.PAID.value:
            raise BusinessRuleException(
                f"Booking {booking_id} is already paid", code="ALREADY_PAID"
            )
        if booking.status == BookingStatus.CANCELLED.value:
            raise BusinessRuleException(
                f"Booking {booking_id} is cancelled", code="BOOKING_CANCELLED"
            )

        with self.transaction():
            booking.payment_status = PaymentStatus.PAID.value
            booking.payment_method = payment_method
            booking.payment_transaction_id = transaction_id
            booking.updated_at = datetime.now(timezone.utc)
            self.repository.flush()

        self.log_operation("mark_booking_paid", booking_id=booking.id, payment_method=payment_method)
        return BookingRead.model_validate(booking)

    # Queries

    def get_booking(self, booking_id: str) -> BookingRead:
        return BookingRead.model_validate(self._get_or_raise(booking_id))

    @BaseService.measure_operation("get_user_bookings")
    def get_user_bookings(
        self, user_id: str, status: Optional[BookingStatus] = None, limit: Optional[int] = None
    ) -> List[BookingRead]:
        rows = self.repository.get_user_bookings(
            user_id, status=status, limit=limit or self.settings.default_page_size
        )
        return [BookingRead.model_validate(b) for b in rows]

    def get_partner_bookings(
        self, partner_id: str, status: Optional[BookingStatus] = None, limit: Optional[int] = None
    ) -> List[BookingRead]:
        rows = self.repository.get_partner_bookings(
            partner_id, status=status, limit=limit or self.settings.default_page_size
        )
        return [BookingRead.model_validate(b) for b in rows]

    def get_bookings_by_date_range(
        self, owner_id: str, start_date: date, end_date: date, is_partner: bool = False
    ) -> List[BookingRead]:
        if end_date < start_date:
            raise ValidationException("End date must not be before start date", code="INVALID_RANGE")
        rows = self.repository.get_bookings_by_date_range(owner_id, start_date, end_date, is_partner)
        return [BookingRead.model_validate(b) for b in rows]

    def _after_status_change(self, booking: Booking, message: str) -> None:
        """Post-commit notification and realtime publish; failures are logged only."""
        if self.notification_service is not None:
            try:
                self.notification_service.notify_booking_status(booking)
            except Exception as e:
                logger.error(f"Failed to notify client about booking {booking.id}: {str(e)}")

        if self.realtime_service is not None:
            try:
                self.realtime_service.publish_booking_status(booking, message)
            except Exception as e:
                logger.error(f"Failed to publish realtime status for booking {booking.id}: {str(e)}")
