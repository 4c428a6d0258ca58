# backend/tests/unit/models/test_partner_model.py
from datetime import date

from carenow.models.notification import NotificationPreferences, NotificationType
from carenow.models.partner import Partner


def test_working_days_by_weekday_name():
    partner = Partner(name="A", services=["s1"], working_hours={"tuesday": ["08:00-12:00"]})
    tuesday, wednesday = date(2030, 1, 15), date(2030, 1, 16)

    assert partner.offers("s1") and not partner.offers("s2")
    assert partner.works_on(tuesday)
    assert not partner.works_on(wednesday)
    assert partner.slots_for(tuesday) == ["08:00-12:00"]


def test_preferences_gate_by_type():
    prefs = NotificationPreferences(
        user_id="u1",
        booking_updates=True,
        review_reminders=False,
        system_updates=True,
        promotions=False,
        push_enabled=True,
    )
    assert prefs.allows(NotificationType.BOOKING)
    assert not prefs.allows(NotificationType.REVIEW)
    assert not prefs.allows(NotificationType.PROMOTION)
