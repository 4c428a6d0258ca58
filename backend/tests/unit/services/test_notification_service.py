# backend/tests/unit/services/test_notification_service.py
from datetime import date

import pytest

from carenow.core.exceptions import NotFoundException, ValidationException
from carenow.integrations.push import ConsolePushGateway
from carenow.models.booking import Booking
from carenow.models.notification import NotificationType
from carenow.services.notification_service import NotificationService


@pytest.fixture
def gateway():
    return ConsolePushGateway()


@pytest.fixture
def notifications(db, gateway, test_settings):
    return NotificationService(db, gateway, test_settings)


@pytest.fixture
def user(make_user):
    return make_user(fcm_token="device-1")


def test_default_preferences_created_on_first_read(notifications, user):
    prefs = notifications.get_preferences(user.id)
    assert prefs.booking_updates and prefs.push_enabled
    assert not prefs.promotions


def test_send_to_user_stores_and_pushes(notifications, gateway, user):
    sent = notifications.send_to_user(user.id, "Hi", "Body", NotificationType.SYSTEM, {"k": "v"})
    assert sent is not None
    assert gateway.sent[0]["target"] == "token:device-1"
    assert gateway.sent[0]["data"]["notification_id"] == sent.id
    assert notifications.get_unread_count(user.id) == 1


def test_push_disabled_keeps_in_app_only(notifications, gateway, user):
    notifications.update_preferences(user.id, push_enabled=False)
    assert notifications.send_to_user(user.id, "Hi", "Body") is not None
    assert list(gateway.sent) == []
    assert notifications.get_unread_count(user.id) == 1


def test_muted_category_is_not_delivered(notifications, gateway, user):
    assert notifications.send_to_user(user.id, "Sale", "20% off", NotificationType.PROMOTION) is None
    assert list(gateway.sent) == []
    assert notifications.get_unread_count(user.id) == 0


def test_read_tracking(notifications, user):
    first = notifications.send_to_user(user.id, "A", "a")
    notifications.send_to_user(user.id, "B", "b")

    assert notifications.mark_as_read(first.id).is_read
    assert notifications.get_unread_count(user.id) == 1
    assert notifications.mark_all_as_read(user.id) == 1
    assert notifications.get_unread_count(user.id) == 0
    assert len(notifications.get_user_notifications(user.id)) == 2
    assert notifications.get_user_notifications(user.id, unread_only=True) == []

    with pytest.raises(NotFoundException):
        notifications.mark_as_read("missing")


def test_register_token(notifications, make_user, gateway):
    user = make_user()
    notifications.register_token(user.id, "device-2")
    assert notifications.subscribe_to_topic(user.id, "promotions")
    assert "device-2" in gateway.topics["promotions"]
    assert notifications.unsubscribe_from_topic(user.id, "promotions")
    assert "device-2" not in gateway.topics["promotions"]

    with pytest.raises(ValidationException):
        notifications.register_token(user.id, "")
    with pytest.raises(NotFoundException):
        notifications.register_token("ghost", "device-3")


def test_topic_subscription_without_token(notifications, make_user):
    assert not notifications.subscribe_to_topic(make_user().id, "news")


def test_send_to_topic(notifications, gateway):
    assert notifications.send_to_topic("all", "Maintenance", "Tonight")
    assert gateway.sent[0]["target"] == "topic:all"


def test_notify_booking_status(notifications, gateway, user):
    booking = Booking(
        id="b1",
        user_id=user.id,
        service_name="Elder care",
        scheduled_date=date(2030, 1, 15),
        time_slot="10:00-12:00",
        status="confirmed",
    )
    sent = notifications.notify_booking_status(booking)
    assert sent.title == "Booking confirmed"
    assert "Elder care" in sent.body
    assert sent.type is NotificationType.BOOKING
    assert sent.data == {"booking_id": "b1", "status": "confirmed"}
