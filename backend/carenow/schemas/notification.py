from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from ..models.notification import NotificationType
from .base import SnapshotModel, StrictModel


class NotificationRead(SnapshotModel):
    id: str
    user_id: str
    title: str
    body: str
    type: NotificationType
    data: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: datetime
    read_at: Optional[datetime] = None


class NotificationPreferencesRead(SnapshotModel):
    user_id: str
    booking_updates: bool
    review_reminders: bool
    system_updates: bool
    promotions: bool
    push_enabled: bool


class NotificationPreferencesUpdate(StrictModel):
    booking_updates: Optional[bool] = None
    review_reminders: Optional[bool] = None
    system_updates: Optional[bool] = None
    promotions: Optional[bool] = None
    push_enabled: Optional[bool] = None
