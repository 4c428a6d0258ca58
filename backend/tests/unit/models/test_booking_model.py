# backend/tests/unit/models/test_booking_model.py
from datetime import date, datetime, timedelta, timezone

import pytest

from carenow.models.booking import (
    Booking,
    BookingStatus,
    compute_scheduled_start,
    parse_slot_start,
)


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS),
            (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
            (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED),
        ],
    )
    def test_allowed(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.IN_PROGRESS),
            (BookingStatus.PENDING, BookingStatus.COMPLETED),
            (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
            (BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED),
            (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
            (BookingStatus.CANCELLED, BookingStatus.PENDING),
        ],
    )
    def test_rejected(self, current, target):
        assert not current.can_transition_to(target)

    def test_terminal_statuses(self):
        assert BookingStatus.COMPLETED.is_terminal
        assert BookingStatus.CANCELLED.is_terminal
        assert not BookingStatus.CONFIRMED.is_terminal

    def test_in_progress_wire_value(self):
        assert BookingStatus("in-progress") is BookingStatus.IN_PROGRESS


class TestSlotParsing:
    @pytest.mark.parametrize(
        "slot,expected",
        [("10:00–12:00", (10, 0)), ("08:30-10:30", (8, 30)), ("9:15", (9, 15))],
    )
    def test_first_time_is_start(self, slot, expected):
        assert parse_slot_start(slot) == expected

    @pytest.mark.parametrize("slot", ["", "morning", "25:00-26:00"])
    def test_invalid(self, slot):
        with pytest.raises(ValueError):
            parse_slot_start(slot)

    def test_scheduled_start_is_utc(self):
        start = compute_scheduled_start(date(2030, 1, 15), "10:00–12:00")
        assert start == datetime(2030, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestCanBeCancelled:
    def _booking(self, status=BookingStatus.PENDING):
        return Booking(
            scheduled_date=date(2030, 1, 15), time_slot="10:00–12:00", status=status.value
        )

    def test_exactly_at_notice_boundary_is_too_late(self):
        now = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc)
        assert not self._booking().can_be_cancelled(now, notice_hours=2)

    def test_one_second_before_boundary(self):
        now = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc) - timedelta(seconds=1)
        assert self._booking().can_be_cancelled(now, notice_hours=2)

    def test_naive_now_treated_as_utc(self):
        assert self._booking().can_be_cancelled(datetime(2030, 1, 14, 10, 0), notice_hours=2)

    @pytest.mark.parametrize(
        "status", [BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingStatus.CANCELLED]
    )
    def test_non_cancellable_statuses(self, status):
        now = datetime(2029, 1, 1, tzinfo=timezone.utc)
        assert not self._booking(status).can_be_cancelled(now)

    def test_hours_until_start(self):
        now = datetime(2030, 1, 15, 7, 30, tzinfo=timezone.utc)
        assert self._booking().hours_until_start(now) == pytest.approx(2.5)


def test_apply_status_sets_timestamps():
    booking = Booking(id="b1", status=BookingStatus.IN_PROGRESS.value)
    now = datetime(2030, 1, 15, 12, 0, tzinfo=timezone.utc)
    booking.apply_status(BookingStatus.COMPLETED, now)
    assert booking.status == "completed"
    assert booking.completed_at == now
    assert booking.cancelled_at is None
