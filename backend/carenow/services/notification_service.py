# backend/carenow/services/notification_service.py
"""
Notification Service for CareNow

Stores in-app notifications, applies per-user delivery preferences and
hands push messages to the configured PushGateway.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import NotFoundException, ValidationException
from ..integrations.push import ConsolePushGateway, PushGateway
from ..models.booking import Booking, BookingStatus
from ..models.notification import NotificationPreferences, NotificationType
from ..repositories.factory import RepositoryFactory
from ..schemas.notification import (
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
)
from .base import BaseService

logger = logging.getLogger(__name__)

# (title, body) per booking status; body is formatted with the booking
BOOKING_STATUS_MESSAGES: Dict[BookingStatus, tuple[str, str]] = {
    BookingStatus.PENDING: (
        "Booking received",
        "Your {service_name} booking for {date} ({time_slot}) is waiting for confirmation.",
    ),
    BookingStatus.CONFIRMED: (
        "Booking confirmed",
        "Your {service_name} booking for {date} ({time_slot}) has been confirmed.",
    ),
    BookingStatus.IN_PROGRESS: (
        "Care has started",
        "Your {service_name} session is now in progress.",
    ),
    BookingStatus.COMPLETED: (
        "Booking completed",
        "Your {service_name} session is complete. Tell us how it went!",
    ),
    BookingStatus.CANCELLED: (
        "Booking cancelled",
        "Your {service_name} booking for {date} ({time_slot}) has been cancelled.",
    ),
}


class NotificationService(BaseService):
    """In-app notifications, preferences and push delivery."""

    def __init__(
        self,
        db: Session,
        push_gateway: Optional[PushGateway] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db)
        self.settings = settings or default_settings
        self.push_gateway = push_gateway or ConsolePushGateway()
        self.notification_repository = RepositoryFactory.create_notification_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    # Tokens

    @BaseService.measure_operation("register_token")
    def register_token(self, user_id: str, token: str) -> None:
        """Store the device push token of a user."""
        if not token:
            raise ValidationException("Push token must not be empty", code="INVALID_TOKEN")
        with self.transaction():
            user = self.user_repository.update(
                user_id, fcm_token=token, updated_at=datetime.now(timezone.utc)
            )
            if user is None:
                raise NotFoundException(f"User {user_id} not found", details={"user_id": user_id})

    # Inbox

    def create_notification(
        self,
        user_id: str,
        title: str,
        body: str,
        type: NotificationType = NotificationType.SYSTEM,
        data: Optional[Mapping[str, Any]] = None,
    ) -> NotificationRead:
        with self.transaction():
            notification = self.notification_repository.create(
                user_id=user_id,
                title=title,
                body=body,
                type=NotificationType(type).value,
                data=dict(data or {}),
            )
        return NotificationRead.model_validate(notification)

    def get_user_notifications(
        self, user_id: str, unread_only: bool = False, limit: Optional[int] = None
    ) -> List[NotificationRead]:
        rows = self.notification_repository.get_user_notifications(
            user_id, unread_only=unread_only, limit=limit or self.settings.default_page_size
        )
        return [NotificationRead.model_validate(n) for n in rows]

    def mark_as_read(self, notification_id: str) -> NotificationRead:
        with self.transaction():
            notification = self.notification_repository.get_by_id(notification_id)
            if notification is None:
                raise NotFoundException(
                    f"Notification {notification_id} not found",
                    details={"notification_id": notification_id},
                )
            if not notification.is_read:
                notification.is_read = True
                notification.read_at = datetime.now(timezone.utc)
                self.notification_repository.flush()
        return NotificationRead.model_validate(notification)

    def mark_all_as_read(self, user_id: str) -> int:
        with self.transaction():
            return self.notification_repository.mark_all_read(user_id)

    def get_unread_count(self, user_id: str) -> int:
        return self.notification_repository.count_unread(user_id)

    # Preferences

    def _get_or_create_preferences(self, user_id: str) -> NotificationPreferences:
        prefs = self.notification_repository.get_preferences(user_id)
        if prefs is None:
            with self.transaction():
                prefs = self.notification_repository.create_default_preferences(user_id)
        return prefs

    def get_preferences(self, user_id: str) -> NotificationPreferencesRead:
        return NotificationPreferencesRead.model_validate(self._get_or_create_preferences(user_id))

    def update_preferences(self, user_id: str, **changes: Any) -> NotificationPreferencesRead:
        update = NotificationPreferencesUpdate(**changes)
        prefs = self._get_or_create_preferences(user_id)
        with self.transaction():
            for key, value in update.model_dump(exclude_none=True).items():
                setattr(prefs, key, value)
            prefs.updated_at = datetime.now(timezone.utc)
            self.notification_repository.flush()
        self.log_operation("update_preferences", user_id=user_id)
        return NotificationPreferencesRead.model_validate(prefs)

    # Delivery

    @BaseService.measure_operation("send_to_user")
    def send_to_user(
        self,
        user_id: str,
        title: str,
        body: str,
        type: NotificationType = NotificationType.SYSTEM,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Optional[NotificationRead]:
        """
        Deliver a notification to one user.

        Returns None when the user's preferences mute this notification type.
        Otherwise the in-app notification is stored and, when push is enabled
        and the user has a device token, pushed too.
        """
        notification_type = NotificationType(type)
        prefs = self._get_or_create_preferences(user_id)
        if not prefs.allows(notification_type):
            self.logger.debug(
                f"Notification muted for user {user_id} ({notification_type.value})"
            )
            return None

        notification = self.create_notification(user_id, title, body, notification_type, data)

        if prefs.push_enabled:
            token = self.user_repository.get_fcm_token(user_id)
            if token:
                payload = {**dict(data or {}), "notification_id": notification.id}
                self.push_gateway.send_to_token(token, title, body, payload)
            else:
                self.logger.debug(f"No push token for user {user_id}; in-app only")
        return notification

    def send_to_topic(
        self, topic: str, title: str, body: str, data: Optional[Mapping[str, Any]] = None
    ) -> bool:
        return self.push_gateway.send_to_topic(topic, title, body, data)

    def subscribe_to_topic(self, user_id: str, topic: str) -> bool:
        token = self.user_repository.get_fcm_token(user_id)
        if not token:
            return False
        return self.push_gateway.subscribe_to_topic(token, topic)

    def unsubscribe_from_topic(self, user_id: str, topic: str) -> bool:
        token = self.user_repository.get_fcm_token(user_id)
        if not token:
            return False
        return self.push_gateway.unsubscribe_from_topic(token, topic)

    def notify_booking_status(self, booking: Booking) -> Optional[NotificationRead]:
        """Tell the client about the booking's current status."""
        title, template = BOOKING_STATUS_MESSAGES[booking.status_enum]
        body = template.format(
            service_name=booking.service_name,
            date=booking.scheduled_date.isoformat(),
            time_slot=booking.time_slot,
        )
        return self.send_to_user(
            booking.user_id,
            title,
            body,
            NotificationType.BOOKING,
            {"booking_id": booking.id, "status": booking.status},
        )
