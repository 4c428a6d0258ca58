# backend/tests/unit/services/test_booking_service.py
from datetime import date
from unittest.mock import MagicMock

import pytest

from carenow.core.exceptions import (
    BusinessRuleException,
    CancellationWindowException,
    IncompleteBookingException,
    InvalidStatusTransitionException,
    NotFoundException,
    ValidationException,
)
from carenow.models.booking import Booking, BookingStatus, PaymentStatus
from carenow.schemas.booking import BookingRequest
from carenow.services.booking_service import BookingService


@pytest.fixture
def notifications():
    return MagicMock()


@pytest.fixture
def realtime():
    return MagicMock()


@pytest.fixture
def booking_service(db, test_settings, notifications, realtime):
    return BookingService(
        db, notification_service=notifications, realtime_service=realtime, settings=test_settings
    )


def _request(**overrides):
    data = dict(
        user_id="user-1",
        service_id="elder_care_1",
        scheduled_date=date(2030, 1, 15),
        time_slot="10:00–12:00",
        hours=2.0,
        preferred_partner_id="partner-1",
        client_address="12 Le Loi",
        client_latitude=10.77,
        client_longitude=106.70,
    )
    data.update(overrides)
    return BookingRequest(**data)


@pytest.fixture
def bookable(make_service, make_partner):
    return make_service(), make_partner(id="partner-1")


class TestSubmit:
    def test_persists_pending_unpaid_booking(self, booking_service, bookable, db, notifications):
        booking = booking_service.submit(_request())

        assert booking.status is BookingStatus.PENDING
        assert booking.payment_status is PaymentStatus.UNPAID
        assert booking.total_price == 200000.0
        assert booking.service_name == "Elder care"
        assert booking.partner_id == "partner-1"
        assert db.get(Booking, booking.id) is not None
        notifications.notify_booking_status.assert_called_once()

    def test_incomplete_request_is_not_persisted(self, booking_service, bookable, db):
        with pytest.raises(IncompleteBookingException) as exc_info:
            booking_service.submit(_request(client_address=None))
        assert exc_info.value.details["missing_fields"] == ["client_address"]
        assert db.query(Booking).count() == 0

    def test_unknown_service(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.submit(_request(service_id="ghost"))

    def test_inactive_service(self, booking_service, make_service):
        make_service(is_active=False)
        with pytest.raises(ValidationException):
            booking_service.submit(_request())

    def test_unknown_partner(self, booking_service, make_service, db):
        make_service()
        with pytest.raises(NotFoundException) as exc_info:
            booking_service.submit(_request(preferred_partner_id="ghost"))
        assert exc_info.value.details == {"partner_id": "ghost"}
        assert db.query(Booking).count() == 0

    def test_partner_must_offer_service(self, booking_service, make_service, make_partner, db):
        make_service()
        make_partner(id="partner-1", services=["pet_care_1"])
        with pytest.raises(ValidationException) as exc_info:
            booking_service.submit(_request())
        assert exc_info.value.code == "PARTNER_SERVICE_MISMATCH"
        assert db.query(Booking).count() == 0

    def test_notification_failure_does_not_fail_submit(self, booking_service, bookable, notifications):
        notifications.notify_booking_status.side_effect = RuntimeError("push down")
        assert booking_service.submit(_request()).status is BookingStatus.PENDING

    def test_realtime_bridge_receives_status(self, booking_service, bookable, realtime):
        booking = booking_service.submit(_request())
        published = realtime.publish_booking_status.call_args[0][0]
        assert published.id == booking.id


class TestCancel:
    def test_cancel_well_ahead(self, booking_service, make_booking, hours_before):
        booking = make_booking()
        result = booking_service.cancel(booking.id, "  plans changed ", now=hours_before(24))
        assert result.status is BookingStatus.CANCELLED
        assert result.cancellation_reason == "plans changed"
        assert result.cancelled_at is not None

    def test_exactly_two_hours_before_is_rejected(self, booking_service, make_booking, hours_before):
        booking = make_booking()
        with pytest.raises(CancellationWindowException):
            booking_service.cancel(booking.id, None, now=hours_before(2))

    def test_just_over_two_hours_before_is_allowed(self, booking_service, make_booking, hours_before):
        booking = make_booking()
        result = booking_service.cancel(booking.id, None, now=hours_before(2.01))
        assert result.status is BookingStatus.CANCELLED

    @pytest.mark.parametrize("status", ["in-progress", "completed", "cancelled"])
    def test_terminal_or_started_bookings_cannot_be_cancelled(
        self, booking_service, make_booking, hours_before, status
    ):
        booking = make_booking(status=status)
        with pytest.raises(InvalidStatusTransitionException):
            booking_service.cancel(booking.id, None, now=hours_before(48))

    def test_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.cancel("missing")

    def test_can_be_cancelled_helper_matches_guard(self, booking_service, make_booking, hours_before):
        booking = make_booking()
        assert booking_service.can_be_cancelled(booking, hours_before(3))
        assert not booking_service.can_be_cancelled(booking, hours_before(2))


class TestLifecycle:
    def test_full_happy_path(self, booking_service, make_booking, notifications):
        booking = make_booking(partner_id="")
        assert booking_service.confirm(booking.id, "partner-7").partner_id == "partner-7"
        assert booking_service.start(booking.id).status is BookingStatus.IN_PROGRESS
        completed = booking_service.complete(booking.id)
        assert completed.status is BookingStatus.COMPLETED
        assert completed.completed_at is not None
        assert notifications.notify_booking_status.call_count == 3

    def test_no_skipping(self, booking_service, make_booking):
        booking = make_booking()
        with pytest.raises(InvalidStatusTransitionException):
            booking_service.complete(booking.id)
        with pytest.raises(InvalidStatusTransitionException):
            booking_service.start(booking.id)

    def test_confirm_requires_partner(self, booking_service, make_booking):
        with pytest.raises(ValidationException):
            booking_service.confirm(make_booking().id, "")

    def test_partner_rejects_pending_booking(self, booking_service, make_booking, realtime):
        booking = make_booking(scheduled_date=date.today())
        result = booking_service.reject(booking.id, "partner-1", " fully booked ")

        assert result.status is BookingStatus.CANCELLED
        assert result.cancellation_reason == "fully booked"
        assert result.cancelled_at is not None
        assert realtime.publish_booking_status.call_args[0][1] == "Your partner declined the booking"

    def test_reject_without_reason(self, booking_service, make_booking):
        booking = make_booking(partner_id="")
        assert booking_service.reject(booking.id, "partner-9").cancellation_reason is None

    def test_only_assigned_partner_can_reject(self, booking_service, make_booking):
        booking = make_booking()
        with pytest.raises(ValidationException) as exc_info:
            booking_service.reject(booking.id, "partner-2")
        assert exc_info.value.code == "NOT_BOOKING_PARTNER"
        assert booking_service.get_booking(booking.id).status is BookingStatus.PENDING

    @pytest.mark.parametrize("status", ["confirmed", "completed", "cancelled"])
    def test_only_pending_bookings_can_be_rejected(self, booking_service, make_booking, status):
        booking = make_booking(status=status)
        with pytest.raises(InvalidStatusTransitionException):
            booking_service.reject(booking.id, "partner-1")

    def test_reject_unknown_booking(self, booking_service):
        with pytest.raises(NotFoundException):
            booking_service.reject("missing", "partner-1")

    def test_mark_paid_once(self, booking_service, make_booking):
        booking = make_booking()
        paid = booking_service.mark_paid(booking.id, "cash", "tx-1")
        assert paid.payment_status is PaymentStatus.PAID
        assert paid.payment_transaction_id == "tx-1"
        with pytest.raises(BusinessRuleException):
            booking_service.mark_paid(booking.id, "cash", "tx-2")


class TestQueries:
    def test_user_and_partner_bookings(self, booking_service, make_booking):
        make_booking()
        make_booking(status="confirmed")
        assert len(booking_service.get_user_bookings("user-1")) == 2
        assert len(booking_service.get_user_bookings("user-1", BookingStatus.CONFIRMED)) == 1
        assert len(booking_service.get_partner_bookings("partner-1")) == 2

    def test_date_range_validation(self, booking_service):
        with pytest.raises(ValidationException):
            booking_service.get_bookings_by_date_range("user-1", date(2030, 2, 1), date(2030, 1, 1))

    def test_get_booking(self, booking_service, make_booking):
        booking = make_booking()
        assert booking_service.get_booking(booking.id).formatted_date_time == "15/1/2030 - 10:00-12:00"
        with pytest.raises(NotFoundException):
            booking_service.get_booking("missing")
