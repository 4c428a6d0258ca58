"""Repository for notification inbox entries and delivery preferences."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.constants import DEFAULT_QUERY_LIMIT
from ..core.exceptions import RepositoryException
from ..models.notification import Notification, NotificationPreferences
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Data access for notifications and notification preferences."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification)

    # Inbox
    def get_user_notifications(
        self, user_id: str, unread_only: bool = False, limit: int = DEFAULT_QUERY_LIMIT
    ) -> List[Notification]:
        query = self._build_query().filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        return self._execute_query(query)

    def count_unread(self, user_id: str) -> int:
        return self.count(user_id=user_id, is_read=False)

    def mark_all_read(self, user_id: str) -> int:
        try:
            updated = (
                self._build_query()
                .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
                .update(
                    {"is_read": True, "read_at": datetime.now(timezone.utc)},
                    synchronize_session="fetch",
                )
            )
            self.db.flush()
            return int(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking notifications read: {e}")
            raise RepositoryException(f"Failed to mark notifications read: {e}")

    # Preferences
    def get_preferences(self, user_id: str) -> Optional[NotificationPreferences]:
        return self.db.get(NotificationPreferences, user_id)

    def create_default_preferences(self, user_id: str) -> NotificationPreferences:
        try:
            prefs = NotificationPreferences(user_id=user_id)
            self.db.add(prefs)
            self.db.flush()
            return prefs
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating notification preferences: {e}")
            raise RepositoryException(f"Failed to create notification preferences: {e}")
