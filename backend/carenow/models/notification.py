"""
Notification models for CareNow.

Includes in-app notifications and per-user delivery preferences.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, String, Text
from sqlalchemy.types import JSON

from ..core.ulid_helper import generate_ulid
from ..database import Base


class NotificationType(str, Enum):
    BOOKING = "booking"
    REVIEW = "review"
    SYSTEM = "system"
    PROMOTION = "promotion"


# Preference column gating each notification type
PREFERENCE_FOR_TYPE = {
    NotificationType.BOOKING: "booking_updates",
    NotificationType.REVIEW: "review_reminders",
    NotificationType.SYSTEM: "system_updates",
    NotificationType.PROMOTION: "promotions",
}


class Notification(Base):
    """In-app notification addressed to one user."""

    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    user_id = Column(String(128), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=NotificationType.SYSTEM.value)
    data = Column(JSON, nullable=False, default=dict)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('booking', 'review', 'system', 'promotion')",
            name="ck_notifications_type",
        ),
        Index("idx_notifications_user_created", "user_id", "created_at"),
    )


class NotificationPreferences(Base):
    """Delivery toggles for one user."""

    __tablename__ = "notification_preferences"

    user_id = Column(String(128), primary_key=True)
    booking_updates = Column(Boolean, nullable=False, default=True)
    review_reminders = Column(Boolean, nullable=False, default=True)
    system_updates = Column(Boolean, nullable=False, default=True)
    promotions = Column(Boolean, nullable=False, default=False)
    push_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    def allows(self, notification_type: NotificationType) -> bool:
        return bool(getattr(self, PREFERENCE_FOR_TYPE[notification_type]))
